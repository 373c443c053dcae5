"""MacroTrack backend: macro targets, meal logging, daily tracking and coaching over Flask + Supabase."""
