import sys

from schemarpc.cli import main

sys.exit(main())
