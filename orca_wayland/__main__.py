import sys

from orca_wayland.cli import main

sys.exit(main())
