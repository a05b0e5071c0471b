# Default industry verticals offered on the location form.
# Option values are stable identifiers persisted in locations.industry_id.

DEFAULT_INDUSTRY_GROUPS = [
    {
        'label': 'Education',
        'options': [
            (34, 'Universities'), (35, 'Colleges'), (36, 'Schools'), (37, 'Libraries'),
            (38, 'Teaching'), (39, 'Tutoring lessons'), (40, 'Parent meetings'),
            (41, 'Services'), (42, 'Child care'), (43, 'Driving Schools'),
            (44, 'Driving Instructors'), (45, 'Other'),
        ],
    },
    {
        'label': 'Beauty and wellness',
        'options': [
            (11, 'Beauty salons'), (12, 'Hair salons'), (13, 'Nail salons'),
            (14, 'Eyelash extensions'), (15, 'Spa'), (16, 'Other'),
        ],
    },
    {
        'label': 'Events and entertainment',
        'options': [
            (46, 'Events (One time and Recurring)'), (47, 'Business events'),
            (48, 'Meeting rooms'), (49, 'Escape rooms'), (50, 'Art classes'),
            (51, 'Equipment rental'), (52, 'Photographers'), (53, 'Restaurants'), (54, 'Other'),
        ],
    },
    {
        'label': 'Medical',
        'options': [
            (17, 'Medical Clinics & Doctors'), (18, 'Dentists'), (19, 'Chiropractors'),
            (20, 'Acupuncture'), (21, 'Massage'), (22, 'Physiologists'),
            (23, 'Psychologists'), (24, 'Other'),
        ],
    },
    {
        'label': 'Officials',
        'options': [
            (55, 'City councils'), (56, 'Embassies and consulates'), (57, 'Attorneys'),
            (58, 'Legal services'), (59, 'Financial services'), (60, 'Interview scheduling'),
            (61, 'Call centers'), (62, 'Other'),
        ],
    },
    {
        'label': 'Personal meetings and services',
        'options': [
            (25, 'Consulting'), (26, 'Counselling'), (27, 'Coaching'),
            (28, 'Spiritual services'), (29, 'Design consultants'), (30, 'Cleaning'),
            (31, 'Household'), (32, 'Pet services'), (33, 'Other'),
        ],
    },
    {
        'label': 'Retailers',
        'options': [(1, 'Supermarket'), (2, 'Retail Finance'), (3, 'Other retailers')],
    },
    {
        'label': 'Sport',
        'options': [
            (4, 'Personal trainers'), (5, 'Gyms'), (6, 'Fitness classes'), (7, 'Yoga classes'),
            (8, 'Golf classes'), (9, 'Sport items renting'), (10, 'Other'),
        ],
    },
    {
        'label': 'Other',
        'options': [(63, 'Other')],
    },
]

def normalise_industry_groups(groups):
    """Coerce groups into ``[{'label': str, 'options': [{'value': int, 'label': str}]}]``.

    Options may be given as ``(value, label)`` pairs or as mappings.
    """
    normalised = []
    for group in groups:
        options = []
        for option in group.get('options', []):
            if isinstance(option, dict):
                value, label = option['value'], option['label']
            else:
                value, label = option
            options.append({'value': int(value), 'label': str(label)})
        normalised.append({'label': str(group['label']), 'options': options})
    return normalised
