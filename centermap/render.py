import logging
import queue
import threading

from PIL import Image
from PIL import ImageFont

from centermap import __name__ as APP_NAME
from centermap.bbox import TILE_SIZE


_LOG = logging.getLogger(APP_NAME)


class RenderContext:
    '''Renders the uncropped map for a bounding box, downloading the
    required tiles on the fly.

    ``service`` is the tile source, it must have a ``fetch(tile)`` method
    that returns a *PIL.Image* for a *TileAddress*.

    Up to ``parallel_downloads`` tiles are fetched at the same time.
    If any tile fails, no further tiles are requested and the error is
    raised from ``build()`` right away. Fetches that are still running
    are abandoned, their results are discarded.
    '''

    def __init__(self, service, bbox, parallel_downloads=None, reporter=None):
        self._service = service
        self._bbox = bbox
        self._parallel_downloads = parallel_downloads or 1
        self._report = reporter or _no_reporter
        self._lock = threading.Lock()

    @property
    def bbox(self):
        '''The bounding box for the rendered map.'''
        return self._bbox

    @property
    def crop_box(self):
        '''Get the crop box that will be applied to the stitched map.'''
        return self._bbox.crop_box

    def tiles(self):
        '''List of all tiles needed for the map.'''
        return list(self._bbox.tiles())

    def build(self):
        '''Download all tiles and paste them into the uncropped image.

        Returns the uncropped image.
        '''
        bbox = self._bbox
        img = Image.new('RGBA', (bbox.uncropped_width, bbox.uncropped_height))
        batch = _Batch(img, self.tiles())

        workers = min(self._parallel_downloads, batch.total)
        self._report('Download %d tiles (parallel downloads: %d)',
                     batch.total,
                     workers)

        for _ in range(workers):
            threading.Thread(daemon=True, target=self._work, args=(batch, )).start()

        batch.done.wait()

        with self._lock:
            batch.abort.set()
            error = batch.error
        if error is not None:
            _LOG.warning('Rendering aborted after %d of %d tiles: %s',
                         batch.downloaded,
                         batch.total,
                         error)
            raise error

        self._report('Download complete, create map image')
        return batch.img

    def crop(self, img):
        '''Crop the uncropped map image to the requested map area.'''
        return img.crop(self.crop_box)

    def _work(self, batch):
        '''Download map tiles and paste them onto the result image.'''
        while not batch.abort.is_set():
            try:
                tile = batch.tiles.get(block=False)
            except queue.Empty:
                return

            try:
                tile_img = self._service.fetch(tile)
            except Exception as err:
                with self._lock:
                    if batch.error is None and not batch.abort.is_set():
                        batch.error = err
                    batch.abort.set()
                batch.done.set()
                return

            with self._lock:
                # build() has returned or failed, drop the result
                if batch.abort.is_set():
                    return
                self._paste_tile(batch.img, tile_img, tile)
                self._tile_complete(batch)

    def _paste_tile(self, img, tile_img, tile):
        '''Paste a tile image on the main map image.'''
        if tile_img.size != (TILE_SIZE, TILE_SIZE):
            _LOG.debug('Unexpected size %s for %s', tile_img.size, tile)
        if tile_img.mode != 'RGBA':
            tile_img = tile_img.convert('RGBA')

        img.paste(tile_img, self._bbox.tile_position(tile))

    def _tile_complete(self, batch):
        batch.downloaded += 1
        percentage = int(batch.downloaded / batch.total * 100.0)
        self._report('%3d%%  %4d / %4d',
                     percentage,
                     batch.downloaded,
                     batch.total)
        if batch.downloaded == batch.total:
            batch.done.set()


class _Batch:
    '''State of a single ``build()`` run, shared with its workers.'''

    def __init__(self, img, tiles):
        self.img = img
        self.tiles = queue.Queue()
        for tile in tiles:
            self.tiles.put(tile)
        self.total = self.tiles.qsize()
        self.downloaded = 0
        self.error = None
        self.abort = threading.Event()
        self.done = threading.Event()
        if not self.total:
            self.done.set()


def _no_reporter(*args):
    pass


def load_font(font_name, font_size):
    '''Load the given true type font, return fallback on failure.'''
    try:
        return ImageFont.truetype(font=font_name, size=font_size)
    except OSError:
        return ImageFont.load_default()
