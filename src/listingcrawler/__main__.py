"""Allow ``python -m listingcrawler``."""

from .runner import main

main()
