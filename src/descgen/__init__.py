from descgen.logger import get_logger

__author__ = """descgen maintainers"""
__version__ = "0.3.0"

log = get_logger("descgen")
