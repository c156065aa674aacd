import sys

from codeclip.cli import main

sys.exit(main())
