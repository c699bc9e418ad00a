from sitegrip.cli.reconcile import main

raise SystemExit(main())
