import argparse, json, logging, sys
from pathlib import Path
from .config import DEFAULT_MAX_QUBITS, DEFAULT_MAX_STEPS, InterpreterConfig
from .errors import QBasicError
from .interpreter import run_program


def _read_source(src: str) -> str:
    return sys.stdin.read() if src == "-" else Path(src).read_text()


def _add_run_options(ap: argparse.ArgumentParser):
    ap.add_argument("src", help="program file, or - for stdin")
    ap.add_argument("--seed", type=int, default=None, help="seed measurement sampling")
    ap.add_argument("--max-steps", type=int, default=DEFAULT_MAX_STEPS,
                    help="abort after this many statements (0 disables)")
    ap.add_argument("--time-budget", type=float, default=None, help="abort after this many seconds")
    ap.add_argument("--strict-goto", action="store_true", help="GOTO to a missing line is an error")
    ap.add_argument("--max-qubits", type=int, default=DEFAULT_MAX_QUBITS, help="largest register QINIT may allocate")


def main(argv=None):
    ap = argparse.ArgumentParser(prog="qbasic")
    ap.add_argument("--log-level", default="WARNING",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_run = sub.add_parser("run", help="Run a Quantum BASIC program")
    _add_run_options(ap_run)
    ap_run.add_argument("--json", action="store_true", help="print the full result as JSON")

    ap_tr = sub.add_parser("trace", help="Run a program and dump its circuit trace")
    _add_run_options(ap_tr)

    args = ap.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    config = InterpreterConfig(
        max_steps=args.max_steps or None,
        time_budget=args.time_budget,
        strict_goto=args.strict_goto,
        seed=args.seed,
        max_qubits=args.max_qubits,
    )
    try:
        result = run_program(_read_source(args.src), config)
    except QBasicError as e:
        if args.cmd == "run" and args.json:
            print(json.dumps({"success": False, "error": str(e), "output": e.output + [f"ERROR: {e}"]}, indent=2))
        else:
            for line in e.output:
                print(line)
            print(f"ERROR: {e}")
        return 1

    if args.cmd == "run":
        if args.json:
            print(json.dumps({"success": True, **result.to_dict()}, indent=2))
        else:
            for line in result.output:
                print(line)
    elif args.cmd == "trace":
        if result.circuit_trace is None:
            print("(no quantum register used)")
        else:
            print(result.circuit_trace.dump())
    return 0

if __name__ == "__main__":
    sys.exit(main())
