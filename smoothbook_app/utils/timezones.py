import pytz

def is_valid_timezone(name):
    return name in pytz.all_timezones_set

def timezone_identifiers():
    return list(pytz.common_timezones)

def timezone_choices(selected=None):
    """Group IANA zones by region for a ``<select>`` with optgroups.

    Returns ``[(region, [(value, label, is_selected), ...]), ...]``. A valid
    ``selected`` zone outside the common list is still offered.
    """
    zones = list(pytz.common_timezones)
    if selected and selected not in zones and is_valid_timezone(selected):
        zones.append(selected)

    groups = {}
    for zone in zones:
        region, _, city = zone.partition('/')
        if not city:
            region, city = 'UTC', zone
        label = city.replace('_', ' ').replace('/', ' - ')
        groups.setdefault(region, []).append((zone, label, zone == selected))

    return [(region, sorted(options, key=lambda option: option[1])) for region, options in sorted(groups.items())]
