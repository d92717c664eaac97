"""
Services Layer

- round_robin: pure pairing/date engine, no database or HTTP access
- schedule_builder: persists generated schedules and applies edits

Routes translate service exceptions into HTTP status codes.
"""
