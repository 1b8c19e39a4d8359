"""Allow ``python -m acmeissuer``."""

from acmeissuer.cli.main import main

main()
