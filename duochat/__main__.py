import sys

from duochat.app import main

sys.exit(main())
