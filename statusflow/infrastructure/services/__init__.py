"""Engine services: event bus, trigger matching, guards, target resolution, executor."""
