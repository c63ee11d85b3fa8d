from acornget.cli import main

raise SystemExit(main())
