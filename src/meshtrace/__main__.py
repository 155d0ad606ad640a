import sys

from meshtrace.cli import main

sys.exit(main())
