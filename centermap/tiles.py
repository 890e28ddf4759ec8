from collections import namedtuple

from .errors import ConfigurationError


# Subdomains for the ``{s}`` placeholder
DEFAULT_SHARDS = ('a', 'b', 'c')


class TileAddress(namedtuple('TileAddress', 'x y zoom')):
    '''Identifies a single slippy map tile by its X, Y number and zoom level.'''

    __slots__ = ()

    def shard(self, shards=DEFAULT_SHARDS):
        '''Select the value for the ``{s}`` placeholder.

        Neighboring tiles use different servers. The same tile always uses
        the same one.
        '''
        if not shards:
            raise ConfigurationError('at least one shard is required')
        return shards[(self.x + self.y) % len(shards)]

    def url(self, url_pattern, shards=DEFAULT_SHARDS):
        '''Build the URL for this tile from an URL pattern like
        ``"https://{s}.tile.example.com/{z}/{x}/{y}.png"``.

        The ``{x}, {y}, {z}`` and ``{s}`` placeholders are replaced
        literally, other content of the pattern is left unchanged.
        '''
        url = url_pattern
        url = url.replace('{x}', str(self.x))
        url = url.replace('{y}', str(self.y))
        url = url.replace('{z}', str(self.zoom))
        if '{s}' in url:
            url = url.replace('{s}', self.shard(shards))
        return url

    def __repr__(self):
        return '<Tile %s,%s zoom=%s>' % (self.x, self.y, self.zoom)
