import io
import logging
from pathlib import Path
from urllib.parse import unquote
from urllib.parse import urlparse

from PIL import Image
import requests

from centermap import __version__
from centermap import __name__ as APP_NAME
from centermap.errors import FetchError
from centermap.errors import UnsupportedFormatError
from centermap.tiles import DEFAULT_SHARDS
from centermap.tiles import TileAddress


_LOG = logging.getLogger(APP_NAME)

# Tile images are decoded according to the extension of the URL
SUPPORTED_EXTENSIONS = ('.png', '.jpg')


class TileService:
    '''Fetches slippy map tiles from a tile server or the local file system.

    ``url_pattern`` is the URL for a specific tile,
    e.g. "https://tile.openstreetmap.org/{z}/{x}/{y}.png".
    It must contain the ``{x}, {y}, {z}`` placeholders and end with
    ``.png`` or ``.jpg``.

    The URL pattern may contain an ``{s}`` placeholder, which allows to use
    different servers (subdomains, usually). ``shards`` is the list of values
    for that placeholder, a tile always uses the same one.

    URLs with a ``file://`` scheme or without a scheme are read from the
    local file system.

    ``max_retries`` controls how often failed requests should be repeated
    before raising an error. Retries are only made for failed connections
    (including timeouts).
    If the server responds with an error code (e.g. 403 or 404), the request
    is *not* attempted again.
    '''

    def __init__(self,
                 url_pattern,
                 shards=None,
                 name=None,
                 timeout=30,
                 max_retries=3,
                 session=None):
        self.url_pattern = url_pattern
        self.name = name or self.domain or 'local'
        self.shards = tuple(shards or DEFAULT_SHARDS)
        self._timeout = timeout
        self._max_retries = max_retries

        if session is None:
            session = requests.Session()
            ua = '%s/%s +https://github.com/centermap/centermap' % (APP_NAME, __version__)
            session.headers['User-Agent'] = ua
        self._session = session

    @property
    def domain(self):
        parts = urlparse(self.url_pattern)
        return parts.netloc

    def url(self, tile):
        '''The URL for the given ``TileAddress``.'''
        return tile.url(self.url_pattern, shards=self.shards)

    def check_format(self):
        '''Make sure that the URL pattern points to a supported image type.

        Raises *UnsupportedFormatError* if not.
        '''
        _check_extension(self.url_pattern)

    def fetch(self, tile):
        '''Fetch the given tile and return it as a *PIL.Image*.

        ``tile`` is a *TileAddress*, or an ``(x, y, zoom)`` tuple.

        Raises *UnsupportedFormatError* if the URL has an unsupported
        extension, before any request is made.
        Raises *FetchError* if the tile cannot be downloaded or decoded.
        '''
        tile = TileAddress(*tile)
        url = self.url(tile)
        _check_extension(url)

        if _is_local(url):
            data = self._read_file(url)
        else:
            data = self._download(url)

        return _decode(url, data)

    def _download(self, url):
        try:
            res = self._request(url)
        except requests.RequestException as err:
            _LOG.warning('Request for %r failed with %s', url, err)
            _LOG.debug(err, exc_info=True)
            raise FetchError('failed to download %r: %s' % (url, err),
                             url=url,
                             reason=FetchError.TRANSPORT) from err

        return res.content

    def _request(self, url, retry_count=1):
        try:
            res = self._session.get(url, timeout=self._timeout)
            res.raise_for_status()
            return res
        except (requests.Timeout, requests.ConnectionError) as err:
            # Any error type we would like to retry goes here.
            # Raise only if retries are exhausted.
            if retry_count > self._max_retries:
                _LOG.warning('Request failed after %d retries', retry_count)
                raise err

            _LOG.info('Retry (%d) request after %s', retry_count, err)

        retry_count += 1
        return self._request(url, retry_count=retry_count)

    def _read_file(self, url):
        path = _local_path(url)
        try:
            return path.read_bytes()
        except OSError as err:
            _LOG.warning('Reading %r failed with %s', str(path), err)
            raise FetchError('failed to read %r: %s' % (str(path), err),
                             url=url,
                             reason=FetchError.TRANSPORT) from err

    def __repr__(self):
        return '<TileService name=%r>' % self.name


def _extension(url):
    return Path(urlparse(url).path).suffix.lower()


def _check_extension(url):
    ext = _extension(url)
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(
            'Tile URLs ending in %r are not supported, the URL must end with'
            ' %s' % (ext, ' or '.join(repr(e) for e in SUPPORTED_EXTENSIONS)),
            url=url)


def _decode(url, data):
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except OSError as err:
        _LOG.warning('Could not decode tile %r: %s', url, err)
        raise FetchError('failed to decode %r: %s' % (url, err),
                         url=url,
                         reason=FetchError.DECODE) from err

    return img


def _is_local(url):
    return urlparse(url).scheme in ('', 'file')


def _local_path(url):
    return Path(unquote(urlparse(url).path))
