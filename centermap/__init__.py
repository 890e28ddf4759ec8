__version__ = '0.3.0dev1'
__author__ = 'centermap contributors'

from .bbox import BoundingBox, TILE_SIZE
from .converter import latitude_to_tile_y, longitude_to_tile_x
from .converter import tile_x_to_longitude, tile_y_to_latitude
from .converter import tile_bounds, tile_number
from .core import Map, write_image
from .debug import render_debug_overlay
from .errors import ConfigurationError, FetchError, MapError
from .errors import UnsupportedFormatError, WriteError
from .service import TileService
from .tiles import TileAddress
