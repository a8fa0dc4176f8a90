from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version('movielib')
except PackageNotFoundError:  # running from a source tree
    __version__ = '0.0.0'

from . import exc
