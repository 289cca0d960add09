import sys

from adsb_devserver.main import main

sys.exit(main())
