#!/usr/bin/env python3

"""
usage:  python3 ../pyuniqc/ [-h] [-s ORDER] [--top N] [FILE]
"""

import os
import subprocess
import sys


def main(argv):
    """
    Run "bin/uniqc.py"
    """

    # Find the colocated "bin/" dir

    file_dir = os.path.split(os.path.realpath(__file__))[0]
    bin_dir = os.path.join(file_dir, "bin")

    # Call Uniqc Py, and exit as it exits

    bin_uniqc_py = os.path.join(bin_dir, "uniqc.py")
    ran = subprocess.run([sys.executable, bin_uniqc_py] + argv[1:])
    sys.exit(ran.returncode)


if __name__ == "__main__":
    main(sys.argv)


# copied from:  git clone pyuniqc  # no public remote yet
