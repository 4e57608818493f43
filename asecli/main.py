from __future__ import annotations
import argparse
import logging
import os
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from libase.errors import AseError
from libase.options import LoadOptions, SaveOptions
from libase.reader import read_ase
from libase.roundtrip import roundtrip_file
from libase.summary import scan_ase, summarize_ase
from libase.writer import write_ase

console = Console()
log = logging.getLogger("asecli")

def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )

def _check_input(path: str) -> bool:
    if not os.path.isfile(path):
        console.print(f"File not found: {path}")
        return False
    return True

def cmd_summary(args: argparse.Namespace) -> int:
    s = summarize_ase(args.ase)
    h = s.header
    console.print(f"[bold]File:[/bold] {s.path}")
    console.print(f"[bold]Size:[/bold] {s.file_size} bytes (header says {h.file_size})")
    console.print(f"[bold]Canvas:[/bold] {h.width}x{h.height}  [bold]Depth:[/bold] {h.depth} bpp")
    console.print(f"[bold]Frames:[/bold] {h.frames}   [bold]Speed:[/bold] {h.speed} ms")
    console.print(f"[bold]Colours:[/bold] {h.ncolors}   [bold]Transparent index:[/bold] {h.transparent_index}")
    console.print(f"[bold]Palettes:[/bold] {s.palettes}")

    lt = Table(title="Layers (pre-order)")
    lt.add_column("#", justify="right")
    lt.add_column("Name", overflow="fold")
    lt.add_column("Kind")
    lt.add_column("Flags", justify="right")
    lt.add_column("Cels", justify="right")
    if s.layers:
        for i, l in enumerate(s.layers):
            lt.add_row(str(i), "  " * l.depth + l.name, l.kind, f"0x{l.flags:04X}", str(l.cels))
    else:
        lt.add_row("-", "(none)", "-", "-", "-")
    console.print(lt)

    ft = Table(title="Frames")
    ft.add_column("Frame", justify="right")
    ft.add_column("Offset", justify="right")
    ft.add_column("Size", justify="right")
    ft.add_column("Duration", justify="right")
    ft.add_column("Chunks", overflow="fold")
    for fr in s.frames:
        names = ", ".join(c.type_name for c in fr.chunks) or "-"
        ft.add_row(str(fr.index), f"0x{fr.offset:X}", str(fr.size), str(fr.duration), names)
    console.print(ft)

    for e in s.errors:
        console.print(f"[yellow]warning:[/yellow] {e}")
    return 0

def cmd_dump(args: argparse.Namespace) -> int:
    with open(args.ase, "rb") as f:
        data = f.read()
    header, frames = scan_ase(data)
    console.print(f"size={len(data)}  declared={header.file_size}  frames={header.frames}")
    for fr in frames:
        console.print(
            f"frame[{fr.index:03d}] @0x{fr.offset:X} size={fr.size} magic=0x{fr.magic:04X} "
            f"duration={fr.duration} chunks={len(fr.chunks)}"
        )
        for i, c in enumerate(fr.chunks):
            console.print(f"  chunk[{i:02d}] {c.type_name:10s} type=0x{c.type_int:04X} size={c.size}  @0x{c.offset:X}")
    return 0

def cmd_verify_roundtrip(args: argparse.Namespace) -> int:
    r = roundtrip_file(args.ase, args.out)
    console.print(f"IN : {args.ase}\n     sha256={r.input_sha256}")
    console.print(f"OUT: {args.out or '(memory)'}\n     sha256={r.output_sha256}")
    for e in r.errors:
        console.print(f"[yellow]warning:[/yellow] {e}")
    for d in r.differences:
        console.print(f"[red]diff:[/red] {d}")
    if r.identical:
        console.print("[green]IDENTICAL[/green]")
    elif r.equivalent:
        console.print("[green]EQUIVALENT[/green] (bytes differ, document is the same)")
    else:
        console.print("[red]DIFF[/red]")
    return 0 if r.equivalent else 1

def cmd_resave(args: argparse.Namespace) -> int:
    errors: list = []
    doc = read_ase(args.ase, options=LoadOptions(one_frame=args.one_frame), errors=errors)
    for e in errors:
        console.print(f"[yellow]warning:[/yellow] {e}")
    if args.one_frame:
        doc.total_frames = 1
    write_ase(doc, args.out, options=SaveOptions(compression_level=args.level))
    console.print(f"[green]Wrote[/green] {args.out}")
    return 0

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="asecli")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("summary", help="Print info about an .ase file")
    s.add_argument("ase")
    s.set_defaults(fn=cmd_summary)

    d = sub.add_parser("dump", help="List every frame and chunk")
    d.add_argument("ase")
    d.set_defaults(fn=cmd_dump)

    r = sub.add_parser("verify-roundtrip", help="Load -> save -> load and compare")
    r.add_argument("ase")
    r.add_argument("--out", default=None, help="Also write the re-saved file here")
    r.set_defaults(fn=cmd_verify_roundtrip)

    w = sub.add_parser("resave", help="Load and save again (normalises old files)")
    w.add_argument("ase")
    w.add_argument("--out", required=True)
    w.add_argument("--level", type=int, default=-1, choices=range(-1, 10), metavar="N", help="zlib level, -1..9")
    w.add_argument("--one-frame", action="store_true", help="Keep only the first frame")
    w.set_defaults(fn=cmd_resave)

    return p

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    if not _check_input(args.ase):
        return 2
    try:
        return int(args.fn(args))
    except AseError as e:
        log.error("%s: %s", type(e).__name__, e)
        return 1

if __name__ == "__main__":
    raise SystemExit(main())
