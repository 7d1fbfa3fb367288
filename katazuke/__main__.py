import sys

from katazuke.cli.main import main

sys.exit(main())
