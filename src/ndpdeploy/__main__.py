from ndpdeploy.cli.deploy import main

if __name__ == "__main__":  # pragma: no cover - exercised via module entrypoint
    raise SystemExit(main())
