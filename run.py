#!/usr/bin/env python3
"""
Tenant Ledger Entry Point

Starts the FastAPI server with the tenant ledger and statement workers.
"""

import sys

import uvicorn

from tenant_ledger.config import get_config


def run_server(host: str = "0.0.0.0", port: int = 8080, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "tenant_ledger.api:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )


if __name__ == "__main__":
    config = get_config()
    print("Starting Tenant Ledger...")
    print(f"Storage backend: {config.storage_backend}")
    print(f"Statement workers: {config.executor_core_workers}-{config.executor_max_workers}, "
          f"queue {config.executor_queue_capacity}")
    print(f"API available at: http://localhost:{config.api_port}{config.api_prefix}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        print("\nShutting down Tenant Ledger...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
