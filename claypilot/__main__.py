import sys

from claypilot.cli import main

sys.exit(main())
