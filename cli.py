# cli.py

"""
Run SiteIngest from a source checkout without installing it.

Example:
    python cli.py --config configs/default.yaml crawl example.com --workspace acme --pretty
"""
from site_ingest.cli import cli


if __name__ == '__main__':
    cli()
