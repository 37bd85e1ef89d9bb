#!/usr/bin/env python3

r"""
usage: uniqc.py [-h] [-s ORDER] [--top N] [FILE]

count each distinct line, then print the counts sorted

positional arguments:
  FILE                  a file of lines to count (default: stdin)

options:
  -h, --help            show this help message and exit
  -s ORDER, --sortby ORDER
                        sort by one of Key|Count|None (default: Count)
  --top N               print only the first N lines of counts

quirks:
  prints each line before its count, separated by one "\t" tab, unlike bash "uniq -c"
  sorts by count descending, and then by line ascending, unlike bash "sort | uniq -c"
  sorts by code point, not by locale, like bash "LC_ALL=C sort"
  takes Key|Count|None in any case, such as "-s key" or "-s COUNT"
  prints the counts in no particular order when sorting by None
  strips the "\r" of "\r\n" line ends, so they count the same as "\n" line ends
  rejects input that isn't utf-8, rather than guessing its encoding
  quits quietly when output is cut short, such as by "| head"

unsurprising quirks:
  prompts for stdin, like mac bash "grep -R .", unlike bash "sort"
  takes file "-" as meaning "/dev/stdin", like linux "sort -", unlike mac "sort -"

examples:
  uniqc.py /dev/null  # print nothing
  echo 'b a b c a b' | tr ' ' '\n' | uniqc.py  # b 3, a 2, c 1
  echo 'b a b c a b' | tr ' ' '\n' | uniqc.py -s key  # a 2, b 3, c 1
  echo 'b a b c a b' | tr ' ' '\n' | uniqc.py --top 2  # b 3, a 2
  history | cut -c8- | uniqc.py --top 10  # show your ten most common commands
  uniqc.py -s None ~/.bash_history | head  # quit early without complaint
"""


import argparse
import collections
import concurrent.futures
import enum
import heapq
import os
import signal
import sys


# Never sort in worker processes, unless told to
# CPython pickles each (line, count) out to a worker and back, and merges the
# sorted chunks in Python, and those costs alone outrun one 'sorted' of all
PARALLEL_SORT_MIN = None  # or a count of entries, such as 10**6


#
# Name the values passed between the steps
#


RankedEntry = collections.namedtuple("RankedEntry", "line count")


class SortingOrder(enum.Enum):
    """Choose how to order the counted lines"""

    KEY = "Key"
    COUNT = "Count"
    NONE = "None"


class UniqcError(Exception):
    """Fail in one of the ways this command line reports before quitting"""


class InputOpenError(UniqcError):
    """Fail to open the named input file"""


class InputReadError(UniqcError):
    """Fail to read, or to decode, a line of input"""


class OutputWriteError(UniqcError):
    """Fail to write to Stdout, for a reason other than a broken pipe"""


#
# Run from the command line
#


def main(argv=None):
    """Run from the command line"""

    argv_ = sys.argv if (argv is None) else argv

    run_self_tests()

    # Watch for a closed Stdout pipe, before doing anything that might write

    flag = PipeFlag()
    watch_sig_pipe(flag)

    args = parse_uniqc_args(argv_[1:])

    # Count the lines, sort them, and print them

    try:
        with open_incoming(args.file, stdin=sys.stdin) as incoming:
            counts = count_lines(incoming)

        ranked = sort_counts(counts, order=args.sortby)

        stdout_reconfigure_utf_8()
        write_counts(ranked, top=args.top, flag=flag, stdout=sys.stdout)

    except UniqcError as exc:
        stderr_print("uniqc.py: error: {}: {}".format(type(exc).__name__, exc))
        sys.exit(1)

    except KeyboardInterrupt:
        sys.exit(0x80 + signal.SIGINT)  # "128+n if terminated by signal n" <= man bash


def run_self_tests():
    """Run some Self Tests, as part of every Launch"""

    counts = collections.Counter("b a b c a b".split())

    ranked = sort_counts(counts, order=SortingOrder.COUNT)
    assert ranked == [("b", 3), ("a", 2), ("c", 1)], ranked

    ranked = sort_counts(counts, order=SortingOrder.KEY)
    assert ranked == [("a", 2), ("b", 3), ("c", 1)], ranked


def parse_uniqc_args(argv):
    """Parse a Uniqc Py command line, else print help and exit"""

    parser = uniqc_parser_from_doc()
    args = parser.parse_args(argv)  # exits 2 to reject usage

    return args


def uniqc_parser_from_doc():
    """Compile an ArgumentParser from the top-of-file Doc, plus the args it sketches"""

    parser = compile_argdoc(epi="quirks:")

    parser.add_argument(
        "file",
        metavar="FILE",
        nargs="?",  # argparse.OPTIONAL
        help="a file of lines to count (default: stdin)",
    )

    parser.add_argument(
        "-s",
        "--sortby",
        metavar="ORDER",
        type=sorting_order_from_str,
        default=SortingOrder.COUNT,
        help="sort by one of Key|Count|None (default: Count)",
    )

    parser.add_argument(
        "--top",
        metavar="N",
        type=top_from_str,
        help="print only the first N lines of counts",
    )

    return parser


def sorting_order_from_str(chars):
    """Take one of Key|Count|None, in any case"""

    for order in SortingOrder:
        if chars.casefold() == order.value.casefold():
            return order

    str_orders = "|".join(_.value for _ in SortingOrder)
    raise argparse.ArgumentTypeError(
        "choose one of {}, not:  {!r}".format(str_orders, chars)
    )


def top_from_str(chars):
    """Take a count of lines to print, zero or more"""

    try:
        top = int(chars)
    except ValueError:
        top = -1

    if top < 0:
        raise argparse.ArgumentTypeError(
            "want a count of zero or more lines, not:  {!r}".format(chars)
        )

    return top


#
# Read the input
#


def open_incoming(path, stdin):
    """Open the named file, else Stdin, to read binary lines"""

    if (path is None) or (path == "-"):
        prompt_tty_stdin(stdin)
        stdin_buffer = getattr(stdin, "buffer", stdin)

        return StdinBorrower(stdin_buffer)

    try:
        incoming = open(path, mode="rb")  # pylint: disable=consider-using-with
    except OSError as exc:
        raise InputOpenError("{}: {}".format(type(exc).__name__, exc)) from exc

    return incoming


class StdinBorrower:
    """Lend out Stdin inside a 'with' block, without closing it at exit"""

    def __init__(self, incoming):
        self.incoming = incoming

    def __enter__(self):
        return self.incoming

    def __exit__(self, *exc_info):
        pass


def count_lines(incoming):
    """Count each distinct line of binary input, decoded as Utf-8"""

    counts = collections.Counter()

    line_index = 0
    try:
        for line_bytes in incoming:
            line_index += 1

            stripped = line_bytes
            if stripped.endswith(b"\n"):
                stripped = stripped[: -len(b"\n")]
                if stripped.endswith(b"\r"):
                    stripped = stripped[: -len(b"\r")]

            line = stripped.decode("utf-8")  # raises UnicodeDecodeError
            counts[line] += 1

    except UnicodeDecodeError as exc:
        raise InputReadError("line {}: {}".format(line_index, exc)) from exc
    except OSError as exc:
        raise InputReadError("{}: {}".format(type(exc).__name__, exc)) from exc

    return counts


#
# Sort the counts
#


def sort_key_by_key(entry):
    """Sort by line ascending, and then by count descending"""

    return (entry[0], -entry[1])


def sort_key_by_count(entry):
    """Sort by count descending, and then by line ascending"""

    return (-entry[1], entry[0])


def sort_counts(counts, order, jobs=None):
    """Rank the counted lines, in worker processes only when that runs faster"""

    pairs = list(counts.items())  # plain tuples pickle faster than RankedEntry's

    if order is SortingOrder.KEY:
        key = sort_key_by_key
    elif order is SortingOrder.COUNT:
        key = sort_key_by_count
    elif order is SortingOrder.NONE:
        return list(RankedEntry(*_) for _ in pairs)
    else:
        raise ValueError("unknown sorting order: {!r}".format(order))

    if choose_parallel_sort(len(pairs), jobs=jobs):
        jobs_ = os.cpu_count() if (jobs is None) else jobs
        sorted_pairs = parallel_sorted(pairs, key=key, jobs=jobs_)
    else:
        sorted_pairs = sorted(pairs, key=key)

    ranked = list(RankedEntry(*_) for _ in sorted_pairs)

    return ranked


def choose_parallel_sort(length, jobs):
    """Say if worker processes would sort this many entries faster than one 'sorted'"""

    if PARALLEL_SORT_MIN is None:
        return False

    jobs_ = os.cpu_count() if (jobs is None) else jobs
    if not jobs_ or (jobs_ < 2):
        return False

    return length >= PARALLEL_SORT_MIN


def parallel_sorted(pairs, key, jobs):
    """Sort a chunk per worker process, then merge the sorted chunks"""

    chunk_size = -(-len(pairs) // jobs)  # round up
    chunks = list(
        pairs[index : (index + chunk_size)]
        for index in range(0, len(pairs), chunk_size)
    )

    with concurrent.futures.ProcessPoolExecutor(max_workers=len(chunks)) as executor:
        sorted_chunks = list(executor.map(sorted_chunk, chunks, [key] * len(chunks)))

    sorted_pairs = list(heapq.merge(*sorted_chunks, key=key))

    return sorted_pairs

    # such as:  [("b", 3), ("a", 2)], [("c", 1), ("d", 3)]  ->  b, d, a, c


def sorted_chunk(chunk, key):
    """Sort one chunk inside a worker process"""

    return sorted(chunk, key=key)


#
# Write the output
#


def write_counts(ranked, top, flag, stdout):
    """Print each line and its count, till done, or till Stdout closes"""

    entries = ranked if (top is None) else ranked[:top]

    written = 0
    try:
        for (line, count) in entries:
            stdout.write("{}\t{}\n".format(line, count))
            written += 1

            if flag.tripped:
                break

        stdout.flush()

    except BrokenPipeError:
        flag.trip()
        stdout_discard(stdout)

    except OSError as exc:
        raise OutputWriteError("{}: {}".format(type(exc).__name__, exc)) from exc

    return written


def stdout_discard(stdout):
    """Point Stdout at /dev/null, so the exit-time flush quietly drops the rest"""

    try:
        fileno = stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return  # nothing to redirect, such as an 'io.StringIO'

    null_fileno = os.open(os.devnull, flags=os.O_WRONLY)
    os.dup2(null_fileno, fileno)
    os.close(null_fileno)


def stdout_reconfigure_utf_8():
    """Write lines out as the same Utf-8 bytes they were read in as"""

    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")


#
# Notice when Stdout has been closed by the reader
#


class PipeFlag:
    """Say if the reader of Stdout has gone away, once it has"""

    def __init__(self):
        self.tripped = False

    def trip(self):
        self.tripped = True  # and never back to False


class BrokenPipeWatcher:
    """Trip a flag when Stdout's reader goes away"""

    def __init__(self, flag):
        self.flag = flag

    def install(self):
        raise NotImplementedError()

    def is_tripped(self):
        return self.flag.tripped


class SigpipeWatcher(BrokenPipeWatcher):
    """Trip the flag on the first SIGPIPE"""

    def install(self):
        signal.signal(signal.SIGPIPE, self.on_sigpipe)

    def on_sigpipe(self, signum, frame):
        self.flag.trip()  # and nothing more, not even any I/O


class NullBrokenPipeWatcher(BrokenPipeWatcher):
    """Never trip the flag, and leave it to BrokenPipeError instead"""

    def install(self):
        pass


def watch_sig_pipe(flag):
    """Install the watcher for this platform, and return it"""

    if hasattr(signal, "SIGPIPE"):
        watcher = SigpipeWatcher(flag)
    else:
        watcher = NullBrokenPipeWatcher(flag)  # such as Windows

    watcher.install()

    return watcher


#
# Copy-paste some "def"s from elsewhere
#


# deffed in many files  # missing from docs.python.org
def compile_argdoc(epi, doc=None):
    """Declare how to parse the command line, from the top-of-file Doc"""

    doc_ = __doc__ if (doc is None) else doc

    prog = doc_.strip().splitlines()[0].split()[1]
    description = list(_ for _ in doc_.strip().splitlines() if _)[1]
    epilog_at = doc_.index(epi)
    epilog = doc_[epilog_at:].strip()

    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        add_help=True,
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=epilog,
    )

    return parser


# deffed in many files  # missing from docs.python.org
def prompt_tty_stdin(stdin):
    if stdin.isatty():
        stderr_print("Press ⌃D EOF to quit")


# deffed in many files  # missing from docs.python.org
def stderr_print(*args, **kwargs):
    try:
        sys.stdout.flush()
    except OSError:
        pass  # Stdout gone already
    print(*args, **kwargs, file=sys.stderr)
    sys.stderr.flush()  # esp. when kwargs["end"] != "\n"


if __name__ == "__main__":
    sys.exit(main(sys.argv))


# copied from:  git clone pyuniqc  # no public remote yet
