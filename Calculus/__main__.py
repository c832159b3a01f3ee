import logging
import sys

from .limits import limits_from_env
from .repl import run_repl

logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')

if __name__ == "__main__":
    run_repl(sys.stdin, sys.stdout, limits_from_env())
