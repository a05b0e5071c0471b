class Location:
    """Immutable location record as stored in the ``locations`` table."""

    FIELDS = (
        'id', 'name', 'profile_image_id', 'address', 'phone', 'base_email', 'website',
        'timezone', 'industry_id', 'is_event_location', 'is_deleted', 'company_name',
        'company_address', 'company_phone', 'created_at', 'updated_at',
    )

    def __init__(self, id, name, profile_image_id=None, address=None, phone=None,
                 base_email=None, website=None, timezone='Europe/Budapest', industry_id=0,
                 is_event_location=False, is_deleted=False, company_name=None,
                 company_address=None, company_phone=None, created_at=None, updated_at=None):
        self.id = id
        self.name = name
        self.profile_image_id = profile_image_id
        self.address = address
        self.phone = phone
        self.base_email = base_email
        self.website = website
        self.timezone = timezone
        self.industry_id = industry_id
        self.is_event_location = is_event_location
        self.is_deleted = is_deleted
        self.company_name = company_name
        self.company_address = company_address
        self.company_phone = company_phone
        self.created_at = created_at
        self.updated_at = updated_at

    @classmethod
    def from_row(cls, row):
        row = dict(row)

        def text(key):
            value = row.get(key)
            return str(value) if value is not None else None

        return cls(
            id=int(row.get('location_id') or 0),
            name=str(row.get('name') or ''),
            profile_image_id=int(row['profile_image_id']) if row.get('profile_image_id') else None,
            address=text('address'),
            phone=text('phone'),
            base_email=text('base_email'),
            website=text('website'),
            timezone=row.get('timezone') or 'Europe/Budapest',
            industry_id=int(row.get('industry_id') or 0),
            is_event_location=int(row.get('is_event_location') or 0) == 1,
            is_deleted=int(row.get('is_deleted') or 0) == 1,
            company_name=text('company_name'),
            company_address=text('company_address'),
            company_phone=text('company_phone'),
            created_at=text('created_at'),
            updated_at=text('updated_at'),
        )

    @property
    def has_company_details(self):
        return bool(self.company_name or self.company_phone or self.company_address)

    def to_dict(self):
        return {field: getattr(self, field) for field in self.FIELDS}

    def __eq__(self, other):
        if not isinstance(other, Location):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        state = 'deleted' if self.is_deleted else 'active'
        return f"<Location #{self.id} {self.name!r} ({state})>"
