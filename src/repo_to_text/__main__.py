from repo_to_text.cli import main

raise SystemExit(main())
