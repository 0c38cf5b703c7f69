"""ICT Platform — purchase-order approval workflow service."""

__version__ = '1.2.0'
