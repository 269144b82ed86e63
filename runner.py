import os
import sys
import time
import logging
from hotreload import Loader

SERVER_SCRIPT = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             "src", "server.py")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # server.py imports its sibling modules by name
    sys.path.insert(0, os.path.dirname(SERVER_SCRIPT))
    script = Loader(SERVER_SCRIPT)

    while True:
        # Restart the capture whenever server.py has been modified
        if script.has_changed():
            # Ctrl+C stops the current capture, the runner keeps watching
            script.main(sys.argv[1:])

        time.sleep(1)
