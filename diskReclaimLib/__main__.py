import sys

from diskReclaimLib.diskCleaner import main

sys.exit(main())
