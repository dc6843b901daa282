import sys

from outbreak_sim.main import main

sys.exit(main())
