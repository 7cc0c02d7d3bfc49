from __future__ import annotations

import click
import uvicorn


@click.command()
@click.option("-a", "--address", default="0.0.0.0", show_default=True, metavar="ADDR", help="Address to bind to")
@click.option("-p", "--port", default=10983, show_default=True, type=int, metavar="PORT", help="Port to listen on")
@click.version_option(package_name="webring")
def main(address: str, port: int) -> None:
    """A server for hosting a webring!"""
    uvicorn.run("webring.main:app", host=address, port=port)


if __name__ == "__main__":
    main()
