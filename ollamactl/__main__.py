from ollamactl.cli.main import run_app


if __name__ == "__main__":  # pragma: no cover
    run_app()
