from .client import TermClient
from .config import Config
from .render import Renderer
from .session import Session
from .state import State
from .util import Args, parse_command

__version__ = '0.3.0'
