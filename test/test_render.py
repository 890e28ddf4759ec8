import threading
import time
from unittest import TestCase

from PIL import Image

from centermap.bbox import BoundingBox
from centermap.errors import FetchError
from centermap.render import RenderContext


def _tile_color(x, y):
    return (x * 37 % 256, y * 53 % 256, (x + y) % 256, 255)


class MockService:
    '''Returns single colored tiles, the color depends on the tile number.'''

    name = '_mock'

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.fetched = []
        self._lock = threading.Lock()

    def fetch(self, tile):
        with self._lock:
            self.fetched.append(tile)
        if self.fail_on is not None and (tile.x, tile.y) == self.fail_on:
            raise FetchError('failed', url='mock://%s/%s' % (tile.x, tile.y))
        return Image.new('RGB', (256, 256), color=_tile_color(tile.x, tile.y)[:3])


class BlockingService(MockService):
    '''Blocks on one tile until released, fails on another.'''

    def __init__(self, block_on, fail_on):
        MockService.__init__(self, fail_on=fail_on)
        self.block_on = block_on
        self.release = threading.Event()
        self.blocked_done = threading.Event()

    def fetch(self, tile):
        if (tile.x, tile.y) == self.block_on:
            self.release.wait(10)
            self.blocked_done.set()
        return MockService.fetch(self, tile)


class TestRenderContext(TestCase):

    def setUp(self):
        self.bbox = BoundingBox.compute(50.8503, 4.3517, 17, 486, 300)

    def test_build(self):
        service = MockService()
        rc = RenderContext(service, self.bbox)
        img = rc.build()

        self.assertEqual(img.size, (self.bbox.uncropped_width,
                                    self.bbox.uncropped_height))
        self.assertEqual(len(service.fetched), self.bbox.num_tiles)
        self.assertEqual(set(service.fetched), set(self.bbox.tiles()))

        # every tile is placed at its grid position
        for tile in self.bbox.tiles():
            left, top = self.bbox.tile_position(tile)
            expected = _tile_color(tile.x, tile.y)
            self.assertEqual(img.getpixel((left, top)), expected)
            self.assertEqual(img.getpixel((left + 255, top + 255)), expected)

    def test_crop(self):
        rc = RenderContext(MockService(), self.bbox)
        full = rc.build()
        cropped = rc.crop(full)

        self.assertEqual(cropped.size, (486, 300))
        left, top = self.bbox.left_offset, self.bbox.top_offset
        self.assertEqual(cropped.getpixel((0, 0)), full.getpixel((left, top)))
        self.assertEqual(cropped.getpixel((485, 299)),
                         full.getpixel((left + 485, top + 299)))

    def test_parallel_same_result(self):
        serial = RenderContext(MockService(), self.bbox, parallel_downloads=1).build()
        parallel = RenderContext(MockService(), self.bbox, parallel_downloads=4).build()
        self.assertEqual(serial.tobytes(), parallel.tobytes())

    def test_fail_fast(self):
        first = next(self.bbox.tiles())
        service = MockService(fail_on=(first.x, first.y))
        rc = RenderContext(service, self.bbox, parallel_downloads=1)

        with self.assertRaises(FetchError):
            rc.build()

        # no more tiles requested after the failure
        self.assertEqual(len(service.fetched), 1)

    def test_error_propagates_from_workers(self):
        tiles = list(self.bbox.tiles())
        failing = tiles[len(tiles) // 2]
        service = MockService(fail_on=(failing.x, failing.y))
        rc = RenderContext(service, self.bbox, parallel_downloads=3)

        with self.assertRaises(FetchError) as ctx:
            rc.build()
        self.assertEqual(ctx.exception.url, 'mock://%s/%s' % (failing.x, failing.y))
        self.assertTrue(len(service.fetched) <= len(tiles))

    def test_progress(self):
        messages = []

        def reporter(msg, *args):
            messages.append(msg % args)

        RenderContext(MockService(), self.bbox, reporter=reporter).build()
        self.assertIn('100%     9 /    9', messages)
        self.assertEqual(messages[-1], 'Download complete, create map image')

    def test_repeatable(self):
        rc = RenderContext(MockService(), self.bbox, parallel_downloads=2)
        a = rc.build()
        b = rc.build()
        self.assertEqual(a.tobytes(), b.tobytes())

    def test_error_does_not_wait_for_slow_fetch(self):
        tiles = list(self.bbox.tiles())
        slow, failing = tiles[0], tiles[1]
        service = BlockingService(block_on=(slow.x, slow.y),
                                  fail_on=(failing.x, failing.y))
        self.addCleanup(service.release.set)
        rc = RenderContext(service, self.bbox, parallel_downloads=2)

        start = time.monotonic()
        with self.assertRaises(FetchError):
            rc.build()
        self.assertLess(time.monotonic() - start, 5)
        self.assertFalse(service.blocked_done.is_set())
