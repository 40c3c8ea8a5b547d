from price_action.main import main

raise SystemExit(main())
