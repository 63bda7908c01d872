"""
Scheduling Domain

Availability calculation and atomic booking for provider schedules.

Structure:
```
agenda/domain/scheduling/
├── __init__.py
├── errors.py               # Error taxonomy mapped to HTTP codes in main.py
├── statuses.py             # Appointment / payment status enums, transition table
├── time_calculator.py      # Minutes-since-midnight arithmetic, HH:MM parsing
├── availability_service.py # Business hours, time off, past filtering -> slots
├── conflict_resolver.py    # Drop slots taken by active appointments
├── booking_service.py      # Check-and-insert booking, status changes, payment
├── repository.py           # Queries and the locked insert primitive
├── schemas.py              # Request/response models
└── router.py               # /availability and /appointments endpoints
```

Rules:
1. Times of day are ints (0-1439) in the provider's timezone; intervals are half-open
2. Scheduled, confirmed and completed appointments block time; cancelled and no_show do not
3. A booking recomputes availability after taking the provider/date lock
4. "Now" always comes from an injected clock
"""
