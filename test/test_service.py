import io
from pathlib import Path
import shutil
from tempfile import mkdtemp
from unittest import TestCase

from PIL import Image
import requests

from centermap.errors import FetchError
from centermap.errors import UnsupportedFormatError
from centermap.service import TileService
from centermap.tiles import TileAddress


def _png_bytes(color=(10, 20, 30, 255), size=(256, 256)):
    buf = io.BytesIO()
    Image.new('RGBA', size, color=color).save(buf, format='png')
    return buf.getvalue()


class TestTileService(TestCase):

    def test_fetch(self):
        session = MockSession(content=_png_bytes())
        service = TileService('https://{s}.tile.example.com/{z}/{x}/{y}.png',
                              session=session)

        img = service.fetch(TileAddress(5, 2, 17))
        self.assertEqual(img.size, (256, 256))
        self.assertEqual(session.urls, ['https://b.tile.example.com/17/5/2.png'])

    def test_fetch_accepts_tuple(self):
        session = MockSession(content=_png_bytes())
        service = TileService('https://tile.example.com/{z}/{x}/{y}.png',
                              session=session)
        service.fetch((1, 2, 3))
        self.assertEqual(session.urls, ['https://tile.example.com/3/1/2.png'])

    def test_custom_shards(self):
        session = MockSession(content=_png_bytes())
        service = TileService('https://{s}.example.com/{z}/{x}/{y}.png',
                              shards=['x', 'y'],
                              session=session)
        service.fetch(TileAddress(1, 0, 3))
        self.assertEqual(session.urls, ['https://y.example.com/3/1/0.png'])

    def test_name(self):
        service = TileService('https://tile.example.com/{z}/{x}/{y}.png',
                              session=MockSession())
        self.assertEqual(service.name, 'tile.example.com')
        self.assertEqual(service.domain, 'tile.example.com')

        service = TileService('https://tile.example.com/{z}/{x}/{y}.png',
                              name='osm',
                              session=MockSession())
        self.assertEqual(service.name, 'osm')

    def test_unsupported_format(self):
        session = MockSession(content=_png_bytes())
        service = TileService('https://tile.example.com/{z}/{x}/{y}.gif',
                              session=session)

        self.assertRaises(UnsupportedFormatError, service.check_format)
        with self.assertRaises(UnsupportedFormatError) as ctx:
            service.fetch(TileAddress(1, 2, 3))

        err = ctx.exception
        self.assertIsInstance(err, FetchError)
        self.assertEqual(err.reason, FetchError.UNSUPPORTED_FORMAT)
        self.assertEqual(err.url, 'https://tile.example.com/3/1/2.gif')
        # detected before any request
        self.assertEqual(session.urls, [])

    def test_supported_formats(self):
        for pattern in ('http://a.com/{z}/{x}/{y}.png',
                        'http://a.com/{z}/{x}/{y}.jpg',
                        'http://a.com/{z}/{x}/{y}.PNG',
                        'http://a.com/{z}/{x}/{y}.png?apikey=123'):
            TileService(pattern, session=MockSession()).check_format()

        for pattern in ('http://a.com/{z}/{x}/{y}',
                        'http://a.com/{z}/{x}/{y}.jpeg',
                        'http://a.com/{z}/{x}/{y}.webp'):
            service = TileService(pattern, session=MockSession())
            self.assertRaises(UnsupportedFormatError, service.check_format)

    def test_connection_error_is_retried(self):
        session = MockSession(error=requests.ConnectionError('boom'))
        service = TileService('https://tile.example.com/{z}/{x}/{y}.png',
                              max_retries=2,
                              session=session)

        with self.assertRaises(FetchError) as ctx:
            service.fetch(TileAddress(1, 2, 3))

        self.assertEqual(ctx.exception.reason, FetchError.TRANSPORT)
        # first attempt + 2 retries
        self.assertEqual(len(session.urls), 3)

    def test_timeout_is_transport_error(self):
        session = MockSession(error=requests.Timeout('slow'))
        service = TileService('https://tile.example.com/{z}/{x}/{y}.png',
                              max_retries=0,
                              session=session)

        with self.assertRaises(FetchError) as ctx:
            service.fetch(TileAddress(1, 2, 3))
        self.assertEqual(ctx.exception.reason, FetchError.TRANSPORT)
        self.assertEqual(len(session.urls), 1)

    def test_http_error_not_retried(self):
        session = MockSession(status_code=404)
        service = TileService('https://tile.example.com/{z}/{x}/{y}.png',
                              session=session)

        with self.assertRaises(FetchError) as ctx:
            service.fetch(TileAddress(1, 2, 3))
        self.assertEqual(ctx.exception.reason, FetchError.TRANSPORT)
        self.assertEqual(len(session.urls), 1)

    def test_decode_error(self):
        session = MockSession(content=b'<html>not a tile</html>')
        service = TileService('https://tile.example.com/{z}/{x}/{y}.png',
                              session=session)

        with self.assertRaises(FetchError) as ctx:
            service.fetch(TileAddress(1, 2, 3))
        self.assertEqual(ctx.exception.reason, FetchError.DECODE)
        self.assertEqual(ctx.exception.url, 'https://tile.example.com/3/1/2.png')


class TestLocalTiles(TestCase):

    tile_dir = None

    def setUp(self):
        self.tile_dir = mkdtemp()
        d = Path(self.tile_dir).joinpath('3', '1')
        d.mkdir(parents=True)
        d.joinpath('2.png').write_bytes(_png_bytes(color=(1, 2, 3, 255)))

    def tearDown(self):
        if self.tile_dir:
            shutil.rmtree(self.tile_dir, ignore_errors=True)

    def test_read_from_path(self):
        pattern = str(Path(self.tile_dir).joinpath('{z}', '{x}', '{y}.png'))
        service = TileService(pattern)
        img = service.fetch(TileAddress(1, 2, 3))
        self.assertEqual(img.convert('RGBA').getpixel((0, 0)), (1, 2, 3, 255))

    def test_read_from_file_url(self):
        pattern = Path(self.tile_dir).as_uri() + '/{z}/{x}/{y}.png'
        service = TileService(pattern)
        img = service.fetch(TileAddress(1, 2, 3))
        self.assertEqual(img.size, (256, 256))

    def test_missing_file(self):
        pattern = str(Path(self.tile_dir).joinpath('{z}', '{x}', '{y}.png'))
        service = TileService(pattern)
        with self.assertRaises(FetchError) as ctx:
            service.fetch(TileAddress(7, 7, 3))
        self.assertEqual(ctx.exception.reason, FetchError.TRANSPORT)


class MockResponse:

    def __init__(self, url, content=b'', status_code=200):
        self.url = url
        self.content = content
        self.status_code = status_code
        self.headers = {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError('%s Error for %s' % (self.status_code, self.url))


class MockSession:

    def __init__(self, content=b'', status_code=200, error=None):
        self.content = content
        self.status_code = status_code
        self.error = error
        self.urls = []
        self.headers = {}

    def get(self, url, **kwargs):
        self.urls.append(url)
        if self.error:
            raise self.error
        return MockResponse(url, content=self.content, status_code=self.status_code)
