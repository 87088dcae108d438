from __future__ import annotations

import logging

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # rdflib and pyshacl are chatty at debug level
    for name in ("rdflib", "pyshacl"):
        logging.getLogger(name).setLevel(logging.INFO if debug else logging.WARNING)
