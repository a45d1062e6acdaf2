"""
Import for side effects to trace a whole program:

    python -c "import cnysa.register; import runpy; runpy.run_path('app.py', run_name='__main__')"

or add ``import cnysa.register`` at the top of the entry module. A default
instance is built from ``cnysa.yaml``/``cnysa.json`` in the working directory
(plus ``CNYSA_*`` environment variables), every event loop created afterwards
is instrumented, and the timeline is printed when the interpreter exits.
"""

import atexit
import sys

from cnysa.config.options import load_default_options
from cnysa.core import Cnysa
from cnysa.hosts import get_default_host

host = get_default_host()
instance = Cnysa(load_default_options(), host=host).enable()
host.install_policy()


def _print_snapshot() -> None:
    instance.disable()
    host.uninstall_policy()
    sys.stdout.write(instance.create_snapshot() + "\n")
    sys.stdout.flush()


atexit.register(_print_snapshot)
