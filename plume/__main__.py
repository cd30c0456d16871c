import sys

from plume.cli import main

sys.exit(main())
