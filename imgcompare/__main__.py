"""
Allow running the package with: python -m imgcompare

By default, runs the CLI. Use the 'serve' subcommand for the HTTP server.

Examples:
    python -m imgcompare /path/to/photos        # CLI with path
    python -m imgcompare cli /path/to/photos    # CLI (explicit)
    python -m imgcompare serve --port 8080      # HTTP server
    python -m imgcompare config --init          # Create example config file
"""

import sys


def show_config(argv: list) -> int:
    from .user_config import get_user_config

    config = get_user_config()

    if '--init' in argv or '-i' in argv:
        # Create example config file
        if config.create_example_config():
            print("Created example configuration file at:")
            print(f"  {config.config_file_path}")
            print("\nEdit this file to customize imgcompare settings.")
            return 0
        print("Failed to create configuration file.")
        return 1

    # Show current config path and values
    print(f"Configuration file: {config.config_file_path}")
    if config.config_file_path.exists():
        print("Status: found")
    else:
        print("Status: not found (using defaults)")
        print("\nRun 'python -m imgcompare config --init' to create one.")

    print("\nCurrent settings:")
    for key, value in config.to_dict().items():
        print(f"  {key}: {value}")
    return 0


def main():
    command = sys.argv[1] if len(sys.argv) > 1 else None

    if command == 'serve':
        from .app import main as server_main
        server_main(sys.argv[2:])
    elif command == 'config':
        sys.exit(show_config(sys.argv[2:]))
    else:
        # Strip an explicit 'cli' so argparse doesn't take it for a path
        argv = sys.argv[2:] if command == 'cli' else sys.argv[1:]
        from .cli import main as cli_main
        sys.exit(cli_main(argv))


if __name__ == '__main__':
    main()
