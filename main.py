#!/usr/bin/env python3
"""LetBabyTalk — CLI entry point.

Usage:
    python main.py guest
    python main.py register --email <email> --password <pw> [--first-name N] [--last-name N]
    python main.py login --email <email> --password <pw>
    python main.py babies [--select ID]
    python main.py add-baby --name Mia --dob 2024-05-01 --gender female
    python main.py record [--seconds N] [--no-upload] [--output FILE]
    python main.py upload --file <wav_path> [--baby ID]
    python main.py history [--range day|week|month|custom] [--from DATE] [--to DATE] [--baby ID|all]
    python main.py rate --recording ID (--good | --correct LABEL)
    python main.py reasons
    python main.py status
"""

import argparse
import json
import logging
import sys
import time
from datetime import date, datetime

import soundfile as sf

from letbabytalk import config
from letbabytalk.capture import AudioCaptureSession, CaptureState
from letbabytalk.errors import DeviceError, LetBabyTalkError
from letbabytalk.history import ALL_BABIES, TimeRange, summarize
from letbabytalk.models import AnalysisResult, Clip
from letbabytalk.rating import RatingController
from letbabytalk.settings import BabySelection, SettingsStore
from letbabytalk.upload_client import ApiClient, RecordingUploadClient

logger = logging.getLogger("letbabytalk.cli")


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


class Context:
    """Settings plus an API client whose session cookie survives between runs."""

    def __init__(self, args):
        self.store = SettingsStore(args.settings) if args.settings else SettingsStore()
        self.settings = self.store.load()
        if args.api_url:
            self.settings = self.store.update(api_url=args.api_url)
        self.api = ApiClient(self.settings.api_url, on_unauthorized=self._forget_session)
        if self.settings.session_cookie:
            self.api.session.cookies.set(config.SESSION_COOKIE, self.settings.session_cookie)
        self.babies = BabySelection(self.store)

    def _forget_session(self) -> None:
        self.store.update(session_cookie=None)

    def remember_session(self, **changes) -> None:
        cookie = self.api.session.cookies.get(config.SESSION_COOKIE)
        self.settings = self.store.update(session_cookie=cookie, **changes)


def _print_result(result: AnalysisResult) -> None:
    print("\n" + "=" * 60)
    print("ANALYSIS RESULT")
    print("=" * 60)
    print(f"  Recording:  #{result.recording_id}")
    print(f"  Cry type:   {result.cry_type}")
    print(f"  Confidence: {result.confidence:.1%}")
    if result.failed:
        print(f"  Note:       analysis unavailable ({result.error})")
    print("  Recommendations:")
    for rec in result.recommendations:
        print(f"    - {rec}")


def _upload_clip(ctx: Context, clip: Clip, baby_id) -> None:
    uploader = RecordingUploadClient(ctx.api)
    result = uploader.upload(clip, baby_profile_id=baby_id)
    _print_result(result)


def cmd_guest(ctx, args):
    user = ctx.api.create_guest()
    ctx.remember_session(guest_user_id=user.id)
    print(f"Guest session started: {user.id}")


def cmd_register(ctx, args):
    names = {}
    if args.first_name:
        names["firstName"] = args.first_name
    if args.last_name:
        names["lastName"] = args.last_name
    user_id = ctx.api.register(args.password, email=args.email, phone=args.phone, **names)
    ctx.remember_session(guest_user_id=None)
    print(f"Registered {user_id}. A verification code has been sent.")


def cmd_login(ctx, args):
    user = ctx.api.login(args.password, email=args.email, phone=args.phone)
    ctx.remember_session(guest_user_id=None, language=user.language)
    print(f"Logged in as {user.email or user.phone}")


def cmd_babies(ctx, args):
    profiles = ctx.api.baby_profiles()
    if args.select is not None:
        if args.select not in [p.id for p in profiles]:
            print(f"Error: no baby profile {args.select}", file=sys.stderr)
            sys.exit(1)
        ctx.babies.select(args.select)
    selected = ctx.babies.reconcile(profiles)
    if not profiles:
        print("No baby profiles yet. Add one with: python main.py add-baby")
        return
    for p in profiles:
        marker = "*" if p.id == selected else " "
        dob = p.date_of_birth.date().isoformat() if p.date_of_birth else "?"
        print(f" {marker} {p.id:>4}  {p.name:<20} {p.gender or '':<7} born {dob}")


def cmd_add_baby(ctx, args):
    profile = ctx.api.create_baby_profile(args.name, args.dob, args.gender)
    ctx.babies.reconcile(ctx.api.baby_profiles())
    print(f"Added baby profile #{profile.id}: {profile.name}")


def cmd_record(ctx, args):
    session = AudioCaptureSession()
    try:
        session.start()
    except DeviceError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    limit = min(args.seconds or config.MAX_RECORDING_SECONDS, config.MAX_RECORDING_SECONDS)
    print(f"Recording... (Ctrl+C to stop, max {limit:.0f}s)")
    try:
        while session.elapsed < limit and session.state is CaptureState.RECORDING:
            time.sleep(0.2)
    except KeyboardInterrupt:
        pass

    if session.state is CaptureState.RECORDING:
        clip = session.stop()
    elif session.clip is not None:
        clip = session.clip
    else:
        print(f"Error: recording failed ({session.error})", file=sys.stderr)
        sys.exit(1)
    print(f"Captured {clip.duration_seconds:.1f}s")

    if args.output:
        with open(args.output, "wb") as f:
            f.write(clip.data)
        print(f"Saved to {args.output}")
    if not args.no_upload:
        _upload_clip(ctx, clip, args.baby if args.baby is not None else ctx.babies.selected_id)


def cmd_upload(ctx, args):
    info = sf.info(args.file)
    with open(args.file, "rb") as f:
        clip = Clip(data=f.read(), mime_type=config.CLIP_MIME_TYPE, duration_seconds=info.duration)
    _upload_clip(ctx, clip, args.baby if args.baby is not None else ctx.babies.selected_id)


def cmd_history(ctx, args):
    baby = ALL_BABIES if args.baby in (None, ALL_BABIES) else int(args.baby)
    summary = summarize(
        ctx.api.recordings(),
        TimeRange(args.range),
        now=datetime.now().astimezone(),
        baby=baby,
        custom_from=date.fromisoformat(args.date_from) if args.date_from else None,
        custom_to=date.fromisoformat(args.date_to) if args.date_to else None,
    )
    names = {p.id: p.name for p in ctx.api.baby_profiles()}

    print(f"\n{summary.total} recording(s), {summary.categories_used} categories, "
          f"{summary.average_per_category:.1f} per category")
    if summary.top_category:
        print(f"Most frequent: {summary.top_category.title}")
    for c in summary.categories:
        if c.count or args.all:
            print(f"  {c.title:<24} {c.count:>4}  {c.percentage:5.1f}%")
    if args.list:
        print()
        for r in summary.recordings:
            baby_name = names.get(r.baby_profile_id, "Unknown Baby")
            rated = f" [{r.rate_state}]" if r.rate_state else ""
            print(f"  #{r.id:<5} {r.recorded_at:%Y-%m-%d %H:%M}  {baby_name:<15} {r.label}{rated}")


def cmd_rate(ctx, args):
    controller = RatingController(ctx.api)
    recording = ctx.api.recording(args.recording)
    if args.correct:
        updated = controller.correct(recording, args.correct)
    else:
        updated = controller.confirm(recording)
    print(f"Recording #{updated.id} rated {updated.rate_state}")


def cmd_reasons(ctx, args):
    for reason in ctx.api.cry_reasons():
        print(f"{reason.class_name:<24} {reason.title}")
        for rec in reason.recommendations:
            print(f"    - {rec}")


def cmd_status(ctx, args):
    status = {"apiUrl": ctx.settings.api_url, "server": ctx.api.health()}
    status["settings"] = ctx.settings.model_dump(exclude={"session_cookie"})
    print(json.dumps(status, indent=2, default=str))


def main():
    parser = argparse.ArgumentParser(
        description="LetBabyTalk — baby cry analysis client",
        formatter_class=argparse.RawDescriptionHelpFormatter, epilog=__doc__,
    )
    parser.add_argument("--api-url", default=None, help="Server base URL (saved to settings)")
    parser.add_argument("--settings", default=None, help="Settings file path")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("guest")

    for name in ("register", "login"):
        p = sub.add_parser(name)
        p.add_argument("--email")
        p.add_argument("--phone")
        p.add_argument("--password", required=True)
        if name == "register":
            p.add_argument("--first-name")
            p.add_argument("--last-name")

    p = sub.add_parser("babies")
    p.add_argument("--select", type=int, help="Select the baby used for new recordings")

    p = sub.add_parser("add-baby")
    p.add_argument("--name", required=True)
    p.add_argument("--dob", required=True, help="Date of birth, YYYY-MM-DD")
    p.add_argument("--gender", choices=["male", "female"], required=True)

    p = sub.add_parser("record")
    p.add_argument("--seconds", type=float, help="Stop after N seconds (max 30)")
    p.add_argument("--baby", type=int)
    p.add_argument("--output", help="Also save the WAV clip here")
    p.add_argument("--no-upload", action="store_true")

    p = sub.add_parser("upload")
    p.add_argument("--file", required=True)
    p.add_argument("--baby", type=int)

    p = sub.add_parser("history")
    p.add_argument("--range", choices=[t.value for t in TimeRange], default="day")
    p.add_argument("--from", dest="date_from")
    p.add_argument("--to", dest="date_to")
    p.add_argument("--baby", default=None, help="Baby id or 'all'")
    p.add_argument("--all", action="store_true", help="Show empty categories too")
    p.add_argument("--list", action="store_true", help="List the recordings")

    p = sub.add_parser("rate")
    p.add_argument("--recording", type=int, required=True)
    g = p.add_mutually_exclusive_group(required=True)
    g.add_argument("--good", action="store_true")
    g.add_argument("--correct", metavar="LABEL", choices=config.CANONICAL_CATEGORIES)

    sub.add_parser("reasons")
    sub.add_parser("status")

    args = parser.parse_args()
    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    cmds = {
        "guest": cmd_guest, "register": cmd_register, "login": cmd_login,
        "babies": cmd_babies, "add-baby": cmd_add_baby,
        "record": cmd_record, "upload": cmd_upload,
        "history": cmd_history, "rate": cmd_rate,
        "reasons": cmd_reasons, "status": cmd_status,
    }
    ctx = Context(args)
    try:
        cmds[args.command](ctx, args)
    except LetBabyTalkError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
