import sys

from spanner2mysql.cli import main

sys.exit(main())
