"""Pure merge and de-duplication of local and remote catalog entries"""

import functools
import logging
from typing import Callable, Iterable, List

from addonhub.core.addons.models import Addon
from addonhub.core.addons.versions import compare_versions

logger = logging.getLogger(__name__)


def compare_addons(a: Addon, b: Addon) -> int:
    """
    Ordering used to pick the winner among entries sharing a uid.

    Compatible entries sort first, then newer versions. Versions that cannot
    be parsed compare as equal.
    """
    if a.compatible != b.compatible:
        return -1 if a.compatible else 1
    result = compare_versions(a.version, b.version)
    if not result.ok:
        logger.debug(f"Cannot order versions of {a.uid} ('{a.version}' vs '{b.version}'): {result.error}")
    return -int(result.ordering)


def deduplicate(addons: Iterable[Addon]) -> List[Addon]:
    """
    Keep one entry per uid.

    The winner of each group takes the position of the group's first entry.
    """
    groups = {}
    for addon in addons:
        groups.setdefault(addon.uid, []).append(addon)

    result = []
    for uid, group in groups.items():
        if len(group) > 1:
            group = sorted(group, key=functools.cmp_to_key(compare_addons))
            logger.debug(f"Resolved {len(group)} entries for {uid} to version '{group[0].version}'")
        result.append(group[0])
    return result


def merge_addons(
    local: List[Addon],
    remote: List[Addon],
    include_incompatible: bool,
    is_installed: Callable[[str], bool] = lambda uid: False,
) -> List[Addon]:
    """
    Merge local and remote entries into one catalog view.

    Args:
        local: Installed entries, already annotated with their installed state
        remote: Remote catalog entries
        include_incompatible: Keep entries that are neither installed nor compatible
        is_installed: Installed check used to annotate remote entries

    Returns:
        Filtered, de-duplicated list with local entries first
    """
    local_uids = {addon.uid for addon in local}
    merged = list(local)
    for addon in remote:
        if addon.uid not in local_uids:
            merged.append(addon.with_installed(is_installed(addon.uid)))

    if not include_incompatible:
        merged = [addon for addon in merged if addon.installed or addon.compatible]

    return deduplicate(merged)
