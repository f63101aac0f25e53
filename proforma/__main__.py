import sys

from proforma.cli import main

sys.exit(main())
