'''Conversion between decimal degrees and *fractional* tile numbers.

The functions here work with floating point tile numbers. The integer part
of a tile number selects a tile, the fractional part locates a position
within that tile. Round the values down (``floor()``) to get the numbers
used in tile URLs.

Latitudes are only meaningful inside ``MIN_LAT..MAX_LAT``, the range covered
by the Web Mercator projection. Values outside of that range are not
rejected, they simply produce tile numbers that lie outside of the map.

see https://wiki.openstreetmap.org/wiki/Slippy_map_tilenames
'''
from math import atan
from math import cos
from math import degrees
from math import floor
from math import log
from math import pi as PI
from math import radians
from math import sinh
from math import tan


# supported lat bounds for slippy map
MAX_LAT = 85.0511
MIN_LAT = -85.0511


def longitude_to_tile_x(lon, zoom):
    '''Convert a longitude to a fractional X tile number.'''
    n = 2 ** zoom
    return ((lon + 180.0) / 360.0) * n


def tile_x_to_longitude(x, zoom):
    '''Convert a fractional X tile number to a longitude in degrees.'''
    n = 2.0 ** zoom
    return x / n * 360.0 - 180.0


def latitude_to_tile_y(lat, zoom):
    '''Convert a latitude to a fractional Y tile number.

    Y grows towards the south.
    '''
    n = 2 ** zoom
    lat_rad = radians(lat)
    return (1.0 - log(tan(lat_rad) + (1.0 / cos(lat_rad))) / PI) / 2.0 * n


def tile_y_to_latitude(y, zoom):
    '''Convert a fractional Y tile number to a latitude in degrees.'''
    n = 2.0 ** zoom
    lat_rad = atan(sinh(PI * (1.0 - 2.0 * y / n)))
    return degrees(lat_rad)


def tile_number(lat, lon, zoom):
    '''Calculate the X and Y coordinate for the map tile that contains the
    given point at the given zoom level.

    Returns a tuple (x, y).
    '''
    x = longitude_to_tile_x(lon, zoom)
    y = latitude_to_tile_y(lat, zoom)
    return int(floor(x)), int(floor(y))


def tile_bounds(x, y, zoom):
    '''Calculates the edges of the given tile at the given zoom level.

    Returns ``(north, west, south, east)`` in degrees.
    '''
    north = tile_y_to_latitude(y, zoom)
    west = tile_x_to_longitude(x, zoom)
    south = tile_y_to_latitude(y + 1, zoom)
    east = tile_x_to_longitude(x + 1, zoom)
    return north, west, south, east
