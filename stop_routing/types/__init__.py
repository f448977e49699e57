from . import input, base, public
