#!/bin/python
'''The command line interface for centermap.'''
import argparse
from collections import namedtuple
import configparser
import logging
from pathlib import Path
import sys

import appdirs

from . import __author__
from . import __version__
from .converter import tile_bounds
from .core import DEFAULT_HEIGHT
from .core import DEFAULT_PROVIDER
from .core import DEFAULT_WIDTH
from .core import DEFAULT_ZOOM
from .core import Map
from .core import write_image
from .errors import ConfigurationError
from .errors import MapError
from .parse import CenterAction
from .parse import parse_dimensions
from .parse import parse_zoom
from .service import TileService


APP_NAME = 'centermap'
APP_DESC = 'Create a map image centered on a location from tile servers.'

_DEFAULT_CONFIG = '''[centermap]
parallel_downloads = 4
style = terrain
zoom = %(zoom)s
width = %(width)s
height = %(height)s

[services]
terrain     = %(provider)s
osm         = https://tile.openstreetmap.org/{z}/{x}/{y}.png
topo        = https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png
human       = http://{s}.tile.openstreetmap.fr/hot/{z}/{x}/{y}.png
bw          = https://tiles.wmflabs.org/bw-mapnik/{z}/{x}/{y}.png
positron    = https://{s}.basemaps.cartocdn.com/rastertiles/light_all/{z}/{x}/{y}.png
darkmatter  = https://{s}.basemaps.cartocdn.com/rastertiles/dark_all/{z}/{x}/{y}.png
watercolor  = https://stamen-tiles-{s}.a.ssl.fastly.net/watercolor/{z}/{x}/{y}.jpg

[http]
timeout = 30
max_retries = 3
''' % {
    'zoom': DEFAULT_ZOOM,
    'width': DEFAULT_WIDTH,
    'height': DEFAULT_HEIGHT,
    'provider': DEFAULT_PROVIDER,
}

Config = namedtuple('Config', ('urls'
                               ' style'
                               ' zoom'
                               ' width'
                               ' height'
                               ' parallel_downloads'
                               ' timeout'
                               ' max_retries'))

_LOG = logging.getLogger(APP_NAME)


def main(argv=None):
    '''Parse arguments and run the program.'''
    conf_dir = appdirs.user_config_dir(appname=APP_NAME)
    conf_file = Path(conf_dir).joinpath('config.ini')
    conf = read_config(conf_file)
    styles = sorted(conf.urls.keys())

    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=APP_DESC,
        epilog='{p} version {v} -- {author}'.format(
            p=APP_NAME,
            v=__version__,
            author=__author__,
        ),
    )

    parser.add_argument('--version',
                        action='version',
                        version=__version__,
                        help='Print version number and exit')

    parser.add_argument('center',
                        metavar='CENTER',
                        action=CenterAction,
                        help=('Map center as lat,lon pair'
                              ' ("50.8503,4.3517" or "50°51\'1\'\'N,4°21\'6\'\'E").'))

    default_dst = 'map.png'
    parser.add_argument('dst',
                        metavar='PATH',
                        nargs='?',
                        default=default_dst,
                        help=('Where to save the generated image'
                              ' (default: %r).') % default_dst)

    parser.add_argument('-z', '--zoom',
                        default=conf.zoom,
                        type=parse_zoom,
                        help=('Zoom level (0..22), higher means more detailed'
                              ' (default: %s).') % conf.zoom)

    parser.add_argument('--size',
                        metavar='WxH',
                        type=parse_dimensions,
                        default=(conf.width, conf.height),
                        help=('Size of the map image in pixels'
                              ' (default: %sx%s).') % (conf.width, conf.height))

    parser.add_argument('-s', '--style',
                        choices=styles,
                        default=conf.style,
                        help='Map style (default: %r)' % conf.style)

    parser.add_argument('-u', '--url',
                        metavar='PATTERN',
                        help=('Tile URL pattern with {x}, {y}, {z} and'
                              ' optional {s} placeholders, overrides --style'))

    parser.add_argument('--debug',
                        action='store_true',
                        help=('Do not crop the map, draw tile limits and the'
                              ' crop area instead'))

    parser.add_argument('--dry-run',
                        action='store_true',
                        help='Show map info, do not download tiles')

    parser.add_argument('--silent',
                        action='store_true',
                        help='Do not output messages to the console')

    parser.add_argument('-v', '--verbose',
                        action='store_true',
                        help='Show debug log messages')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    reporter = _no_reporter if args.silent else _print_reporter
    reporter('Using configuration from %r', str(conf_file))

    try:
        _run(args, conf, reporter)
    except MapError as err:
        reporter('ERROR: %s', err)
        _LOG.debug(err, exc_info=True)
        return 1

    return 0


def _run(args, conf, report):
    '''Set up the map, download tiles and create the image.'''
    lat, lon = args.center
    width, height = args.size

    url_pattern = args.url or conf.urls.get(args.style)
    if not url_pattern:
        raise ConfigurationError('no URL pattern for style %r' % args.style)

    m = Map.centered_on(lat, lon, zoom=args.zoom)
    m.with_dimensions(width, height)
    m.with_tile_provider(url_pattern)
    m.debug(args.debug)

    service = TileService(url_pattern,
                          name=args.style if not args.url else None,
                          timeout=conf.timeout,
                          max_retries=conf.max_retries)

    _show_info(report, service, m)
    if args.dry_run:
        return

    img = m.render(service=service,
                   parallel_downloads=conf.parallel_downloads,
                   reporter=report)
    write_image(img, args.dst)

    report('Map saved to %s', args.dst)


def _print_reporter(msg, *args):
    print(msg % args)


def _no_reporter(msg, *args):
    pass


def _show_info(report, service, m):
    bbox = m.bounding_box()
    north, west, _, _ = tile_bounds(bbox.min_tile_x, bbox.min_tile_y, bbox.zoom)
    _, _, south, east = tile_bounds(bbox.max_tile_x, bbox.max_tile_y, bbox.zoom)

    report('-------------------------------')
    report('Center:      %s, %s', m.lat, m.lon)
    report('Area:        N %.6f  W %.6f  S %.6f  E %.6f',
           bbox.top, bbox.left, bbox.bottom, bbox.right)
    report('Zoom Level:  %s', bbox.zoom)
    report('Dimensions:  %s x %s px', bbox.width, bbox.height)
    report('Uncropped:   %s x %s px, offset %s,%s',
           bbox.uncropped_width, bbox.uncropped_height,
           bbox.left_offset, bbox.top_offset)
    report('Tiles:       %s (%s x %s) from %s,%s to %s,%s',
           bbox.num_tiles, bbox.x_tile_count, bbox.y_tile_count,
           bbox.min_tile_x, bbox.min_tile_y, bbox.max_tile_x, bbox.max_tile_y)
    report('Tile Area:   N %.6f  W %.6f  S %.6f  E %.6f',
           north, west, south, east)
    report('Map Style:   %s', service.name)
    report('URL Pattern: %s', service.url_pattern)
    report('-------------------------------')


def read_config(path):
    '''Read configuration from the given file in .ini format.
    Returns names and url patterns for services and other settings, combined
    from built-in configuration and the specified file.'''
    cfg = configparser.ConfigParser(interpolation=None)

    # built-in from code
    cfg.read_string(_DEFAULT_CONFIG)

    # user settings
    cfg.read([str(path), ])

    return Config(
        urls={k: v for k, v in cfg.items('services')},
        style=cfg.get('centermap', 'style', fallback='terrain'),
        zoom=cfg.getint('centermap', 'zoom', fallback=DEFAULT_ZOOM),
        width=cfg.getint('centermap', 'width', fallback=DEFAULT_WIDTH),
        height=cfg.getint('centermap', 'height', fallback=DEFAULT_HEIGHT),
        parallel_downloads=cfg.getint('centermap', 'parallel_downloads', fallback=1),
        timeout=cfg.getfloat('http', 'timeout', fallback=30),
        max_retries=cfg.getint('http', 'max_retries', fallback=3),
    )


if __name__ == '__main__':
    sys.exit(main())
