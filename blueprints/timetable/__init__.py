"""Чтение расписания: какие предметы реально стоят у класса в четверти."""
