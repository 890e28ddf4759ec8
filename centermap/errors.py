'''Errors raised while rendering a map.

Every error that aborts a render derives from ``MapError``.
'''


class MapError(Exception):
    '''Base class for all errors raised by centermap.'''


class ConfigurationError(MapError, ValueError):
    '''The map is not set up properly, e.g. width or height are missing.

    Raised before any tile is requested.
    '''


class FetchError(MapError):
    '''A tile could not be fetched.

    ``reason`` tells what went wrong:

    - ``transport``: network or file system failure (includes timeouts
      and HTTP error responses)
    - ``decode``: the data could not be read as an image
    - ``unsupported_format``: the tile URL does not point to a supported
      image type
    '''

    TRANSPORT = 'transport'
    DECODE = 'decode'
    UNSUPPORTED_FORMAT = 'unsupported_format'

    def __init__(self, msg, url=None, reason=TRANSPORT):
        super().__init__(msg)
        self.url = url
        self.reason = reason


class UnsupportedFormatError(FetchError):
    '''The tile URL ends with an extension other than ``.png`` or ``.jpg``.'''

    def __init__(self, msg, url=None):
        super().__init__(msg, url=url, reason=FetchError.UNSUPPORTED_FORMAT)


class WriteError(MapError, OSError):
    '''The map image could not be written to its destination.'''
