from sqlalchemy import Column, Enum, Float, ForeignKey, Integer, Text, UniqueConstraint, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class CompanySettings(Base):
    __tablename__ = 'company_settings'

    id = Column(Integer, primary_key=True)
    company_name = Column(Text, nullable=False, server_default=text("''"))
    company_email = Column(Text, nullable=False, server_default=text("''"))
    company_phone = Column(Text, nullable=False, server_default=text("''"))
    company_address = Column(Text, nullable=False, server_default=text("''"))
    time_zone = Column(Text, nullable=False, server_default=text("'America/New_York'"))
    time_format = Column(Enum('12h', '24h', name='time_format'), nullable=False, server_default=text("'12h'"))
    business_hours = Column(Text)
    minimum_booking_value = Column(Float, nullable=False, server_default=text('0'))


class Services(Base):
    __tablename__ = 'services'

    name = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    duration_min = Column(Integer, nullable=False)
    pricing_type = Column(
        Enum('fixed_item', 'area_based', 'base_plus_addons', 'custom_quote', name='pricing_type'),
        nullable=False,
        server_default=text("'fixed_item'"),
    )
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    sort_order = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    base_price = Column(Float)
    price_per_unit = Column(Float)
    minimum_price = Column(Float)
    area_sizes = Column(Text)

    options = relationship(
        'ServiceOptions',
        back_populates='service',
        cascade='all, delete-orphan',
        order_by='ServiceOptions.sort_order',
    )
    frequencies = relationship(
        'ServiceFrequencies',
        back_populates='service',
        cascade='all, delete-orphan',
        order_by='ServiceFrequencies.sort_order',
    )
    booking_items = relationship('BookingItems', back_populates='service')


class ServiceOptions(Base):
    __tablename__ = 'service_options'

    service_id = Column(ForeignKey('services.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    max_quantity = Column(Integer, nullable=False, server_default=text('10'))
    sort_order = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)

    service = relationship('Services', back_populates='options')


class ServiceFrequencies(Base):
    __tablename__ = 'service_frequencies'

    service_id = Column(ForeignKey('services.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    discount_percent = Column(Float, nullable=False, server_default=text('0'))
    sort_order = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)

    service = relationship('Services', back_populates='frequencies')


class Bookings(Base):
    __tablename__ = 'bookings'

    customer_name = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=False)
    customer_address = Column(Text, nullable=False)
    booking_date = Column(Text, nullable=False, index=True)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    total_duration_minutes = Column(Integer, nullable=False)
    total_price = Column(Float, nullable=False)
    payment_method = Column(Enum('site', 'online', name='payment_method'), nullable=False)
    payment_status = Column(
        Enum('unpaid', 'paid', name='payment_status'),
        nullable=False,
        server_default=text("'unpaid'"),
    )
    status = Column(
        Enum('pending', 'confirmed', 'cancelled', 'completed', name='booking_status'),
        nullable=False,
        server_default=text("'pending'"),
    )
    id = Column(Integer, primary_key=True)
    customer_email = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    items = relationship(
        'BookingItems',
        back_populates='booking',
        cascade='all, delete-orphan',
    )
    slot_claims = relationship(
        'BookingSlotClaims',
        back_populates='booking',
        cascade='all, delete-orphan',
    )


class BookingItems(Base):
    __tablename__ = 'booking_items'

    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    service_name = Column(Text, nullable=False)
    pricing_type = Column(Text, nullable=False, server_default=text("'fixed_item'"))
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    area_size = Column(Text)
    area_value = Column(Float)
    selected_options = Column(Text)
    selected_frequency = Column(Text)
    customer_notes = Column(Text)
    price_breakdown = Column(Text)

    booking = relationship('Bookings', back_populates='items')
    service = relationship('Services', back_populates='booking_items')


class BookingSlotClaims(Base):
    """
    One row per 15-minute cell held by an active booking.

    The unique (booking_date, slot_time) pair is what makes two overlapping
    bookings impossible to commit, whatever the database isolation level.
    """
    __tablename__ = 'booking_slot_claims'
    __table_args__ = (
        UniqueConstraint('booking_date', 'slot_time'),
    )

    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    booking_date = Column(Text, nullable=False)
    slot_time = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)

    booking = relationship('Bookings', back_populates='slot_claims')
