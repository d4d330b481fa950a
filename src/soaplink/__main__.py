"""
Entry point for `python -m soaplink`.

Usage:
    python -m soaplink call https://host/service envelope.xml --action urn:Op
    python -m soaplink get https://host/service?wsdl
"""

from .ui.cli import main

main()
