from tapchannels.cli import main

raise SystemExit(main())
