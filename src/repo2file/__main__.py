from repo2file.cli import main

raise SystemExit(main())
