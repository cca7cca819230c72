"""
AutoPatch CLI Entry Point.

Usage:
    autopatch resolve
    autopatch check --installed vendor/installed.json
    autopatch apply vendor/package
    autopatch --help
"""

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from autopatch import __version__
from autopatch.drift import classify_drift
from autopatch.errors import PatcherError
from autopatch.host import JsonRepository, PackageEvent, VendorInstaller, load_root_package
from autopatch.orchestrator import Patcher
from autopatch.patching.report import read_report

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autopatch",
        description="AutoPatch - patch installed packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  autopatch resolve --json
  autopatch check
  autopatch apply
  autopatch apply vendor/package --verbose
        """,
    )

    parser.add_argument(
        "--project",
        default="project.json",
        help="Project file with the root package's extra data (default: project.json)",
    )
    parser.add_argument(
        "--vendor-dir",
        default="vendor",
        help="Directory packages are installed in (default: vendor)",
    )
    parser.add_argument(
        "--installed",
        default=None,
        help="Installed packages file (default: <vendor-dir>/installed.json)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show resolver and patch tool details",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"AutoPatch {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve", help="List the patches that apply to each package")
    resolve.add_argument("--json", action="store_true", help="Print the patches as JSON")

    subparsers.add_parser("check", help="Report packages whose patches changed since install")

    apply = subparsers.add_parser("apply", help="Patch freshly installed packages")
    apply.add_argument(
        "packages",
        nargs="*",
        help="Packages to patch (default: every installed package)",
    )

    return parser


def cmd_resolve(patcher: Patcher, repository: JsonRepository, as_json: bool) -> int:
    collection = patcher.resolve_patches(PackageEvent("install", patcher.root, repository))

    if as_json:
        print(json.dumps(collection.to_dict(), indent=4))
        return 0

    table = Table(title="Resolved patches")
    table.add_column("Package")
    table.add_column("Description")
    table.add_column("URL")
    table.add_column("Resolver", style="dim")
    for patch in collection:
        table.add_row(patch.package, patch.description, patch.url, patch.resolver)
    console.print(table)
    return 0


def cmd_check(patcher: Patcher, repository: JsonRepository) -> int:
    decisions = patcher.check_patches(repository)

    if not decisions:
        console.print("[green]✓ Installed patches are up to date[/green]")
        return 0

    table = Table(title="Packages to reinstall")
    table.add_column("Package")
    table.add_column("Change")
    table.add_column("Installed")
    table.add_column("Resolved")
    for decision in decisions:
        table.add_row(
            decision.package,
            decision.kind,
            "\n".join(decision.previous) or "-",
            "\n".join(decision.resolved) or "-",
        )
    console.print(table)
    return 1


def cmd_apply(patcher: Patcher, repository: JsonRepository, names: list[str]) -> int:
    collection = patcher.resolve_patches(PackageEvent("install", patcher.root, repository))

    if names:
        unknown = [name for name in names if repository.find_package(name) is None]
        if unknown:
            console.print(f"[red]Not installed: {', '.join(unknown)}[/red]")
            return 1
        packages = [repository.find_package(name) for name in names]
    else:
        packages = list(repository)

    failures = 0
    stale = 0

    try:
        for package in packages:
            install_path = patcher.installer.get_install_path(package)
            if not install_path.exists():
                console.print(f"[yellow]⚠ {package.name} is not installed at {install_path}[/yellow]")
                continue

            previous = package.applied_patches or read_report(install_path)
            if previous:
                if classify_drift(previous, collection.applied_map(package.name)):
                    console.print(
                        f"[yellow]⚠ {package.name} was patched differently, reinstall it first[/yellow]"
                    )
                    stale += 1
                elif patcher.verbose:
                    console.print(f"[dim]{package.name} is already patched[/dim]")
                continue

            result = patcher.post_install(PackageEvent("install", patcher.root, repository, package))
            if result is not None and not result.success:
                failures += 1
    finally:
        repository.save()

    if failures or stale:
        console.print(Panel.fit(
            f"[bold]Packages with failed patches:[/bold] {failures}\n"
            f"[bold]Packages to reinstall:[/bold] {stale}",
            title="Incomplete",
            border_style="yellow",
        ))
        return 1

    console.print("[green]✓ All patches applied[/green]")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        root = load_root_package(Path(args.project))
        vendor_dir = Path(args.vendor_dir)
        if not vendor_dir.is_absolute():
            vendor_dir = root.path / vendor_dir
        installed = Path(args.installed) if args.installed else vendor_dir / "installed.json"
        repository = JsonRepository.load(installed)

        patcher = Patcher(root, installer=VendorInstaller(vendor_dir), verbose=args.verbose)

        if patcher.config.disable_patching:
            console.print("[yellow]Patching is disabled[/yellow]")
            sys.exit(0)

        if args.command == "resolve":
            code = cmd_resolve(patcher, repository, args.json)
        elif args.command == "check":
            code = cmd_check(patcher, repository)
        else:
            code = cmd_apply(patcher, repository, args.packages)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)

    except PatcherError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
