import logging
import os
from pathlib import Path
import stat
import tempfile

from centermap import __name__ as APP_NAME
from centermap.bbox import BoundingBox
from centermap.debug import render_debug_overlay
from centermap.errors import ConfigurationError
from centermap.errors import WriteError
from centermap.render import RenderContext
from centermap.service import TileService


_LOG = logging.getLogger(APP_NAME)

# The "Terrain" style from Stamen Design, covers the whole world map.
# see http://maps.stamen.com/#terrain
DEFAULT_PROVIDER = 'http://tile.stamen.com/terrain/{z}/{x}/{y}.png'
DEFAULT_ZOOM = 17
DEFAULT_WIDTH = 486
DEFAULT_HEIGHT = 300


class Map:
    '''A map image of a given size, centered on a location.

    Set up the map with the ``with_xxx`` methods, they return the map itself
    so that calls can be chained::

        img = (Map.centered_on(50.8503, 4.3517)
               .with_zoom(16)
               .with_dimensions(600, 400)
               .render())

    In *debug* mode, the map is not cropped. Instead, tile limits and the
    area that would have been cropped are drawn on the uncropped image.
    '''

    def __init__(self, lat=None, lon=None, zoom=None):
        self.lat = lat
        self.lon = lon
        self.zoom = DEFAULT_ZOOM if zoom is None else zoom
        self.width = DEFAULT_WIDTH
        self.height = DEFAULT_HEIGHT
        self.url_pattern = DEFAULT_PROVIDER
        self.shards = None
        self.in_debug_mode = False

    @classmethod
    def centered_on(cls, lat, lon, zoom=None):
        '''Create a map with its center at the given location.'''
        return cls(lat=lat, lon=lon, zoom=zoom)

    centred_on = centered_on

    def with_zoom(self, zoom):
        self.zoom = zoom
        return self

    def with_dimensions(self, width, height):
        '''Set the size of the map image in pixels.'''
        self.width = width
        self.height = height
        return self

    def with_tile_provider(self, url_pattern, shards=None):
        '''Use a different tile server.

        ``url_pattern`` is a URL with ``{x}, {y}, {z}`` and optionally
        ``{s}`` placeholders, see *TileService*.
        '''
        self.url_pattern = url_pattern
        self.shards = shards
        return self

    def debug(self, enabled=True):
        '''Turn debug mode on (or off).'''
        self.in_debug_mode = enabled
        return self

    def bounding_box(self):
        '''Calculate the bounding box for this map.

        Raises *ConfigurationError* if the map has no dimensions or no
        center.
        '''
        if not self.width or not self.height:
            raise ConfigurationError(
                'You must provide dimensions in order to render the map,'
                ' use with_dimensions(width, height) to do so.')
        if self.width < 0 or self.height < 0:
            raise ConfigurationError('invalid map dimensions %sx%s'
                                     % (self.width, self.height))
        if self.lat is None or self.lon is None:
            raise ConfigurationError('You must provide the map center.')

        return BoundingBox.compute(self.lat,
                                   self.lon,
                                   self.zoom,
                                   self.width,
                                   self.height)

    def tile_service(self):
        '''Create a *TileService* for this map's tile provider.'''
        return TileService(self.url_pattern, shards=self.shards)

    def render(self, service=None, parallel_downloads=None, reporter=None):
        '''Download the required tiles and create the map image.

        ``service`` is the tile source, uses the configured tile provider if
        *None*.

        Returns a *PIL.Image* with the requested dimensions or, in debug
        mode, the uncropped image with debug information.
        '''
        bbox = self.bounding_box()
        _LOG.debug('Render %r', bbox)

        service = service or self.tile_service()
        check = getattr(service, 'check_format', None)
        if check:
            check()

        rc = RenderContext(service,
                           bbox,
                           parallel_downloads=parallel_downloads,
                           reporter=reporter)
        img = rc.build()

        if self.in_debug_mode:
            return render_debug_overlay(img, bbox, self.width, self.height)

        return rc.crop(img)

    def save(self, dst, format=None, **kwargs):
        '''Render the map and write it to ``dst``.

        ``dst`` is either a path or a binary file-like object.
        Other keyword arguments are passed to ``render()``.
        '''
        img = self.render(**kwargs)
        write_image(img, dst, format=format)

    def __repr__(self):
        return '<Map center=%s,%s zoom=%s size=%sx%s>' % (self.lat,
                                                          self.lon,
                                                          self.zoom,
                                                          self.width,
                                                          self.height)


def write_image(img, dst, format=None):
    '''Write the image to a path or a binary file-like object.

    Files are written to a temporary file first and then moved to ``dst``,
    so an error never leaves a partially written file.

    ``format`` is the image format (e.g. ``"png"``), guessed from the file
    name if *None*. Streams are written as PNG by default.

    Raises *WriteError* on failure.
    '''
    if hasattr(dst, 'write'):
        format = _normalize_format(format or 'png')
        try:
            _for_format(img, format).save(dst, format=format)
        except (OSError, ValueError, KeyError) as err:
            raise WriteError('failed to write map image: %s' % err) from err
        return

    dst = Path(dst)
    format = _normalize_format(format or dst.suffix.lstrip('.') or 'png')
    img = _for_format(img, format)

    tmp = None
    try:
        fd, tmp = tempfile.mkstemp(prefix='.' + dst.name + '.',
                                   dir=str(dst.parent))
        with os.fdopen(fd, 'wb') as f:
            img.save(f, format=format)
        os.chmod(tmp, _file_mode(dst))
        os.replace(tmp, str(dst))
        tmp = None
    except (OSError, ValueError, KeyError) as err:
        _LOG.warning('Writing %r failed with %s', str(dst), err)
        raise WriteError('failed to write %r: %s' % (str(dst), err)) from err
    finally:
        if tmp is not None:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass


def _file_mode(dst):
    # keep the mode of an existing file, else what open() would create
    try:
        return stat.S_IMODE(os.stat(str(dst)).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _normalize_format(format):
    format = format.lower()
    return 'jpeg' if format == 'jpg' else format


def _for_format(img, format):
    # JPEG has no alpha channel
    if format == 'jpeg' and img.mode == 'RGBA':
        return img.convert('RGB')
    return img
