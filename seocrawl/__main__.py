import sys

from seocrawl.cli import main

sys.exit(main())
