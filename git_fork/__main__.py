import sys

from git_fork.cli.main import main

sys.exit(main())
