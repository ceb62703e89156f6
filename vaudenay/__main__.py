import sys

from vaudenay.cli import main

sys.exit(main())
