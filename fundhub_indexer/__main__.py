import sys

from fundhub_indexer.cli import main

sys.exit(main())
