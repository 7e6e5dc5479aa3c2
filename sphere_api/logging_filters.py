import logging

STRUCTURED_FIELDS = ('ip', 'event', 'city', 'units', 'origin', 'kind', 'latency', 'error')


class ExtraFieldsFilter(logging.Filter):
    def filter(self, record):
        for name in STRUCTURED_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, 'unknown')
        return True
