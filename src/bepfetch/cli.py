# src/bepfetch/cli.py

import argparse
import sys
from functools import partial
from pathlib import Path
from typing import List, Optional, Tuple

from bepfetch import config as config_module
from bepfetch import log_utils
from bepfetch.config import Settings
from bepfetch.download import (
    Architecture,
    AssetResolver,
    BleedingEdgeSource,
    EngineBackend,
    FileOperations,
    GithubReleaseSource,
    Release,
    ReleaseCatalog,
    ReleaseChannel,
    TargetDescriptor,
    is_supported,
    refresh_catalog,
)
from bepfetch.exceptions import (
    ArchiveError,
    ConfigurationError,
    DownloadError,
    ResolutionError,
    SourceError,
    ValidationError,
    VersionError,
)

CHANNEL_ALL = "all"
CHANNEL_CHOICES = ("stable", "bleeding-edge")
DEFAULT_LIST_LIMIT = 20


def _load_settings(config_path: Optional[str]) -> Settings:
    """
    Load the YAML configuration and validate it into Settings.

    A configured `LOG_LEVEL` is applied here; the `--log-level` flag is applied
    afterwards by the caller and therefore wins.

    Raises:
        ConfigurationError: If the file cannot be parsed or a value is invalid.
    """
    raw = config_module.load_config(config_path)
    settings = Settings.from_config(raw)
    if settings.log_level:
        log_utils.set_log_level(settings.log_level)
    return settings


def _parse_channel(value: Optional[str]) -> Optional[ReleaseChannel]:
    if value is None or value == CHANNEL_ALL:
        return None
    return ReleaseChannel.from_string(value)


def build_catalog(
    settings: Settings,
    channel: Optional[ReleaseChannel] = None,
    include_prereleases: Optional[bool] = None,
) -> ReleaseCatalog:
    """
    Refresh the release catalog for one channel, or both when `channel` is None.

    Parameters:
        settings (Settings): Validated settings carrying URLs, floors and token.
        channel (ReleaseChannel | None): Restrict the refresh to one source.
        include_prereleases (bool | None): Override `settings.include_prereleases`.

    Returns:
        ReleaseCatalog: The merged catalog; failed sources are listed in `catalog.errors`.
    """
    pre_releases = (
        settings.include_prereleases
        if include_prereleases is None
        else include_prereleases
    )

    stable_fetch = None
    if channel in (None, ReleaseChannel.STABLE):
        stable_source = GithubReleaseSource(
            releases_url=settings.stable_releases_url,
            github_token=settings.github_token,
            allow_env_token=settings.allow_env_token,
        )
        stable_fetch = partial(
            stable_source.fetch_all,
            pre_releases=pre_releases,
            min_version=settings.min_stable_version,
        )

    bleeding_fetch = None
    if channel in (None, ReleaseChannel.BLEEDING_EDGE):
        bleeding_source = BleedingEdgeSource(base_url=settings.bleeding_edge_base_url)
        bleeding_fetch = partial(
            bleeding_source.fetch_all, min_artifact_id=settings.min_be_artifact_id
        )

    return refresh_catalog(stable_fetch, bleeding_fetch)


def select_release(
    catalog: ReleaseCatalog, channel: ReleaseChannel, version: Optional[str]
) -> Release:
    """
    Pick the requested release of `channel`, or its newest one when no version is given.

    Raises:
        SourceError: If the channel could not be refreshed.
        VersionError: If no matching release exists.
    """
    if channel in catalog.errors:
        raise catalog.errors[channel]

    if version:
        release = catalog.find(version, channel)
        if release is None:
            raise VersionError(
                f"No {channel.value} release matches {version}",
                field="version",
                value=version,
            )
        return release

    release = catalog.latest(channel)
    if release is None:
        raise VersionError(f"No {channel.value} releases available")
    return release


def _target_from_args(args: argparse.Namespace) -> TargetDescriptor:
    return TargetDescriptor(
        engine_backend=EngineBackend.from_string(args.backend),
        architecture=Architecture.from_string(args.arch),
    )


def _handle_list(args: argparse.Namespace, settings: Settings) -> None:
    channel = _parse_channel(args.channel)
    catalog = build_catalog(
        settings, channel, include_prereleases=args.prereleases or None
    )
    if catalog.errors and not catalog:
        raise next(iter(catalog.errors.values()))

    releases = catalog.releases_for(channel)
    if args.limit is not None:
        releases = releases[: args.limit]
    if not releases:
        log_utils.logger.info("No releases found.")
        return
    for release in releases:
        suffix = f" (#{release.artifact_id})" if release.artifact_id else ""
        log_utils.logger.info(
            f"{release.channel.value:<14} {release.version.display()}{suffix}"
        )


def _select_from_args(
    args: argparse.Namespace, settings: Settings
) -> Tuple[Release, TargetDescriptor]:
    channel = _parse_channel(args.channel) or ReleaseChannel.STABLE
    target = _target_from_args(args)
    catalog = build_catalog(settings, channel)
    return select_release(catalog, channel, args.version), target


def _handle_resolve(args: argparse.Namespace, settings: Settings) -> None:
    release, target = _select_from_args(args, settings)
    asset = AssetResolver(settings.be_naming_cutover).resolve(release, target)
    log_utils.logger.info(f"{release.channel.value} {release.version}")
    log_utils.logger.info(asset.name)
    log_utils.logger.info(asset.download_url)


def _handle_install(args: argparse.Namespace, settings: Settings) -> None:
    release, target = _select_from_args(args, settings)
    if not is_supported(release, target):
        raise ResolutionError(
            f"{target.engine_backend.value} is not supported by {release.version}"
        )
    asset = AssetResolver(settings.be_naming_cutover).resolve(release, target)
    download_dir = settings.download_dir or config_module.get_default_download_dir()
    files = FileOperations().install_asset(asset, args.dest, download_dir)
    log_utils.logger.info(
        f"Installed {asset.name} ({len(files)} files) into {args.dest}"
    )


def _add_target_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--backend",
        required=True,
        help="Game runtime backend: Mono or IL2CPP (also UnityMono, Unity.IL2CPP, ...)",
    )
    subparser.add_argument(
        "--arch", required=True, help="Game architecture: x64 or x86"
    )
    subparser.add_argument(
        "--channel",
        choices=CHANNEL_CHOICES,
        default="stable",
        help="Release channel to pick from (default: stable)",
    )
    subparser.add_argument(
        "--version",
        help="Exact release version (default: newest release of the channel)",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="bepfetch - BepInEx release finder and installer"
    )
    parser.add_argument("--config", help="Path to an alternative bepfetch.yaml")
    parser.add_argument(
        "--log-level", help="Console log level (DEBUG, INFO, WARNING, ERROR)"
    )
    parser.add_argument(
        "--log-dir", help="Also write a rotating bepfetch.log into this directory"
    )
    subparsers = parser.add_subparsers(dest="command")

    # Command to list releases
    list_parser = subparsers.add_parser("list", help="List available releases")
    list_parser.add_argument(
        "--channel",
        choices=CHANNEL_CHOICES + (CHANNEL_ALL,),
        default=CHANNEL_ALL,
        help="Release channel to list (default: all)",
    )
    list_parser.add_argument(
        "--prereleases",
        action="store_true",
        help="Include stable releases flagged as pre-releases",
    )
    list_parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_LIST_LIMIT,
        help=f"Show at most this many releases (default: {DEFAULT_LIST_LIMIT})",
    )

    # Command to resolve the asset for a target
    resolve_parser = subparsers.add_parser(
        "resolve", help="Show the asset to download for a game"
    )
    _add_target_arguments(resolve_parser)

    # Command to download and extract into a game directory
    install_parser = subparsers.add_parser(
        "install", help="Download and extract a release into a game directory"
    )
    install_parser.add_argument("dest", help="Game directory to extract into")
    _add_target_arguments(install_parser)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the bepfetch command-line interface.

    Parses arguments, loads settings and dispatches the list, resolve and
    install subcommands. Failures to refresh the release list and failures to
    pick an asset are reported separately; every error exits with status 1.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    handlers = {
        "list": _handle_list,
        "resolve": _handle_resolve,
        "install": _handle_install,
    }

    try:
        settings = _load_settings(args.config)
        if args.log_level:
            log_utils.set_log_level(args.log_level)
        if args.log_dir:
            log_utils.add_file_logging(
                Path(args.log_dir), args.log_level or settings.log_level or "INFO"
            )
        handlers[args.command](args, settings)
    except SourceError as e:
        log_utils.logger.error(f"Could not refresh release list: {e}")
        sys.exit(1)
    except ResolutionError as e:
        log_utils.logger.error(
            f"Cannot install the selected version for this target: {e}"
        )
        if e.asset_name:
            log_utils.logger.error(f"Expected asset: {e.asset_name}")
        sys.exit(1)
    except (
        ConfigurationError,
        ValidationError,
        DownloadError,
        ArchiveError,
    ) as e:
        log_utils.logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
