"""Run the bridge with ``python -m n8n_mcp_bridge``."""

from n8n_mcp_bridge.api.main import run_development_server


def main() -> None:
    run_development_server()


if __name__ == "__main__":
    main()
