from collections import namedtuple
from math import floor

from .converter import latitude_to_tile_y
from .converter import longitude_to_tile_x
from .converter import tile_x_to_longitude
from .converter import tile_y_to_latitude
from .tiles import TileAddress


# Edge length of a (square) tile in pixels.
TILE_SIZE = 256


_FIELDS = ('left bottom right top'
           ' left_tile_index top_tile_index right_tile_index bottom_tile_index'
           ' x_tile_count y_tile_count'
           ' uncropped_width uncropped_height'
           ' left_offset top_offset'
           ' zoom width height')


class BoundingBox(namedtuple('BoundingBox', _FIELDS)):
    '''The area covered by a map and the tiles needed to draw it.

    ``left, bottom, right, top`` are the edges of the requested map area in
    degrees. The ``*_tile_index`` fields hold the same edges as fractional
    tile numbers.

    The tiles that contain the map area form the *uncropped* image of
    ``uncropped_width x uncropped_height`` pixels. The requested map of
    ``width x height`` pixels is located at ``left_offset, top_offset``
    within the uncropped image.

    Use ``BoundingBox.compute()`` to set up a box.
    '''

    __slots__ = ()

    @classmethod
    def compute(cls, lat, lon, zoom, width, height):
        '''Calculate the bounding box for a map of ``width x height``
        pixels centered on ``lat, lon``.'''
        # center as fractional tile number
        x = longitude_to_tile_x(lon, zoom)
        y = latitude_to_tile_y(lat, zoom)

        # map dimensions in tiles, e.g. 500px => 1.953125
        half_width = (width / TILE_SIZE) / 2
        half_height = (height / TILE_SIZE) / 2

        # tile Y grows southward
        left = tile_x_to_longitude(x - half_width, zoom)
        bottom = tile_y_to_latitude(y + half_height, zoom)
        right = tile_x_to_longitude(x + half_width, zoom)
        top = tile_y_to_latitude(y - half_height, zoom)

        # Tile indices are derived from the edges in degrees and not from
        # the center +/- half dimensions. The two may differ in the last bit.
        left_index = longitude_to_tile_x(left, zoom)
        bottom_index = latitude_to_tile_y(bottom, zoom)
        right_index = longitude_to_tile_x(right, zoom)
        top_index = latitude_to_tile_y(top, zoom)

        left_offset = int((left_index - floor(left_index)) * TILE_SIZE)
        top_offset = int((top_index - floor(top_index)) * TILE_SIZE)

        x_count = floor(right_index) - floor(left_index) + 1
        y_count = floor(bottom_index) - floor(top_index) + 1

        return cls(
            left=left,
            bottom=bottom,
            right=right,
            top=top,
            left_tile_index=left_index,
            top_tile_index=top_index,
            right_tile_index=right_index,
            bottom_tile_index=bottom_index,
            x_tile_count=x_count,
            y_tile_count=y_count,
            uncropped_width=x_count * TILE_SIZE,
            uncropped_height=y_count * TILE_SIZE,
            left_offset=left_offset,
            top_offset=top_offset,
            zoom=zoom,
            width=width,
            height=height,
        )

    @property
    def min_tile_x(self):
        return floor(self.left_tile_index)

    @property
    def max_tile_x(self):
        return floor(self.right_tile_index)

    @property
    def min_tile_y(self):
        return floor(self.top_tile_index)

    @property
    def max_tile_y(self):
        return floor(self.bottom_tile_index)

    @property
    def num_tiles(self):
        return self.x_tile_count * self.y_tile_count

    @property
    def crop_box(self):
        '''The area of the requested map on the uncropped image as a
        ``(left, top, right, bottom)`` tuple in pixels.'''
        return (self.left_offset,
                self.top_offset,
                self.left_offset + self.width,
                self.top_offset + self.height)

    def tiles(self):
        '''Generate the addresses of all tiles covered by this box,
        row by row from the top left (northwestern) tile.'''
        for y in range(self.min_tile_y, self.max_tile_y + 1):
            for x in range(self.min_tile_x, self.max_tile_x + 1):
                yield TileAddress(x, y, self.zoom)

    def tile_position(self, tile):
        '''Pixel position of the top left corner of ``tile`` on the
        uncropped image.'''
        return ((tile.x - self.min_tile_x) * TILE_SIZE,
                (tile.y - self.min_tile_y) * TILE_SIZE)

    def __repr__(self):
        return ('<BoundingBox left=%s top=%s right=%s bottom=%s'
                ' tiles=%sx%s zoom=%s>') % (self.left,
                                            self.top,
                                            self.right,
                                            self.bottom,
                                            self.x_tile_count,
                                            self.y_tile_count,
                                            self.zoom)
