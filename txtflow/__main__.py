import sys

from txtflow.cli import main

sys.exit(main())
