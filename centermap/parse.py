'''Parse command line arguments.'''
import argparse
from argparse import ArgumentError
import re

from .converter import MAX_LAT
from .converter import MIN_LAT

MAX_ZOOM = 22

# 47°26'13.5'' with optional minutes and seconds, whitespace removed
_DMS = re.compile(r"^(?P<deg>[\d.]+)°(?:(?P<min>[\d.]+)'(?:(?P<sec>[\d.]+)'')?)?$")


class CenterAction(argparse.Action):
    '''Parse the map center from a "lat,lon" pair.'''

    def __call__(self, parser, namespace, values, option_string=None):
        try:
            setattr(namespace, self.dest, parse_coordinates(values))
        except ValueError as err:
            msg = 'failed to parse map center from %r: %s' % (values, err)
            raise ArgumentError(self, msg)


def parse_coordinates(raw):
    '''Parse a "lat,lon" pair in decimal ("50.8503,4.3517") or DMS
    ("50°51'1'' N, 4°21'6'' E") notation.

    The latitude must lie strictly inside the Web Mercator range.
    '''
    if not raw:
        raise ValueError('missing coordinates')

    parts = raw.split(',')
    if len(parts) != 2:
        raise ValueError('Expected two values separated by ","')

    lat = _parse_degrees(parts[0], 'ns')
    lon = _parse_degrees(parts[1], 'ew')

    if not MIN_LAT < lat < MAX_LAT:
        raise ValueError('latitude must be in range %s..%s' % (MIN_LAT, MAX_LAT))
    if not -180.0 <= lon <= 180.0:
        raise ValueError('longitude must be in range -180.0..180.0')

    return lat, lon


def _parse_degrees(raw, hemispheres):
    '''Parse one decimal or DMS value, with an optional hemisphere suffix.

    ``hemispheres`` holds the positive and the negative suffix, e.g. "ns".
    '''
    value = ''.join(raw.lower().split())
    sign = 1
    if value and value[-1] in hemispheres:
        if value[-1] == hemispheres[1]:
            sign = -1
        value = value[:-1]

    try:
        return sign * float(value)
    except ValueError:
        pass

    match = _DMS.match(value)
    if not match:
        raise ValueError('invalid coordinate %r' % raw.strip())

    degrees = float(match.group('deg'))
    degrees += float(match.group('min') or 0) / 60.0
    degrees += float(match.group('sec') or 0) / 3600.0
    return sign * degrees


def parse_dimensions(raw):
    '''Parse the map size in pixels from "WIDTHxHEIGHT", e.g. "486x300".'''
    if not raw:
        raise ValueError('Invalid argument (empty)')

    parts = raw.lower().split('x')
    if len(parts) != 2:
        raise ValueError('Invalid size %r, expected format "WxH"' % raw)

    w, h = int(parts[0]), int(parts[1])
    if w <= 0 or h <= 0:
        raise ValueError('Invalid size %r, width and height must be positive' % raw)

    return w, h


def parse_zoom(raw):
    '''Parse a zoom level in the interval 0..22.'''
    v = int(raw)
    if v < 0 or v > MAX_ZOOM:
        raise ValueError('Zoom value must be in interval 0..%s' % MAX_ZOOM)
    return v
