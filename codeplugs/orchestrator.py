"""Import and export of whole codeplugs.

Single files and multi-file archives are decoded with the dialect codecs
and written to the store in dependency order (directory and talkgroups,
then channels, then the collections that reference channels by name).
Each file is its own unit of work: a malformed member is reported and
skipped, members already imported stay imported.
"""

from __future__ import annotations

import io
import logging
import posixpath
import threading
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, AbstractSet, Dict, List, Optional, Sequence, Union

from sqlalchemy.engine import Engine

from . import membership, repository
from .codecs import (
    ARCHIVE_DIALECTS,
    AUTO,
    CODECS,
    archive_layout,
    decode_channels,
    get_codec,
    member_name,
    read_table,
    sniff,
    sniff_archive,
    write_table,
)
from .contacts import ContactResolver
from .exceptions import CodeplugError, ImportCancelled, MalformedFileError, NotFoundError
from .feeds import DirectoryClient
from .models.enums import EntityKind
from .models.orm import RoamingChannelRow
from .models.records import Channel, Contact, DirectoryContact, RoamingChannel, RoamingZone, RowError, ScanList, Zone
from .progress import ProgressTracker, Reporter
from .repository import session_scope
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)

Source = Union[bytes, str, Path, IO[bytes], IO[str]]

_KIND_ORDER = {kind: i for i, kind in enumerate(EntityKind)}

_DECODERS = {
    EntityKind.TALKGROUPS: "decode_talkgroups",
    EntityKind.ZONES: "decode_zones",
    EntityKind.SCAN_LISTS: "decode_scan_lists",
    EntityKind.ROAMING_CHANNELS: "decode_roaming_channels",
    EntityKind.ROAMING_ZONES: "decode_roaming_zones",
}


@dataclass
class ImportSummary:
    """Outcome of importing one file.

    ``skipped`` counts records already present in the store; rows that
    could not be decoded or failed validation are listed in ``errors``.
    """

    member: str
    kind: EntityKind
    decoded: int = 0
    imported: int = 0
    skipped: int = 0
    errors: List[RowError] = field(default_factory=list)
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def describe(self) -> str:
        if self.failure:
            return f"{self.member}: failed ({self.failure})"
        return (
            f"{self.member}: {self.imported} imported, {self.skipped} skipped, "
            f"{len(self.errors)} row errors"
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "member": self.member,
            "kind": self.kind.value,
            "decoded": self.decoded,
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": [str(e) for e in self.errors],
            "failure": self.failure,
        }


@dataclass
class ExportBundle:
    channels: List[Channel] = field(default_factory=list)
    contacts: List[Contact] = field(default_factory=list)
    directory: List[DirectoryContact] = field(default_factory=list)
    zones: List[Zone] = field(default_factory=list)
    scan_lists: List[ScanList] = field(default_factory=list)
    roaming_channels: List[RoamingChannel] = field(default_factory=list)
    roaming_zones: List[RoamingZone] = field(default_factory=list)


def _read_source(source: Source):
    if isinstance(source, Path):
        return source.read_bytes()
    return source


class CodeplugOrchestrator:
    def __init__(
        self,
        engine: Engine,
        settings: Optional[Settings] = None,
        reporter: Optional[Reporter] = None,
        cancel: Optional[threading.Event] = None,
        client_factory=DirectoryClient,
    ) -> None:
        self.engine = engine
        self.settings = settings or load_settings()
        self.tracker = ProgressTracker(reporter, cancel)
        self._client_factory = client_factory

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_file(
        self,
        source: Source,
        dialect: str,
        kind: EntityKind = EntityKind.CHANNELS,
        overwrite: bool = False,
        allow_ids: Optional[AbstractSet[int]] = None,
        name: Optional[str] = None,
        zone: Optional[str] = None,
    ) -> ImportSummary:
        """Import one CSV file of ``kind`` written in ``dialect``.

        ``dialect`` may be ``"auto"`` to pick the channel dialect from the
        header. Newly imported channels are appended to ``zone`` when given,
        creating the zone if needed.
        """
        kind = EntityKind(kind)
        summary = ImportSummary(name or f"{kind.value}.csv", kind)
        codec = None if dialect == AUTO else get_codec(dialect)
        self.tracker.start(1, f"importing {summary.member}")
        try:
            self._import_member(_read_source(source), codec, summary, overwrite, allow_ids, zone)
        except Exception as exc:
            self.tracker.fail(f"{summary.member}: {exc}")
            raise
        self.tracker.advance(1, summary.describe())
        self.tracker.complete(summary.describe())
        return summary

    def import_archive(
        self,
        source: Source,
        dialect: str,
        overwrite: bool = False,
        allow_ids: Optional[AbstractSet[int]] = None,
    ) -> List[ImportSummary]:
        """Import every recognised member of a zip archive.

        Cancellation is checked between members and raises
        :class:`ImportCancelled`; members already imported stay in the store.
        """
        codec = None if dialect == AUTO else get_codec(dialect)
        if codec is not None:
            archive_layout(codec.name)
        data = _read_source(source)
        if isinstance(data, bytes):
            data = io.BytesIO(data)
        try:
            archive = zipfile.ZipFile(data)
        except (zipfile.BadZipFile, OSError) as exc:
            self.tracker.fail(f"not a zip archive: {exc}")
            raise MalformedFileError(f"not a zip archive: {exc}") from exc

        summaries: List[ImportSummary] = []
        with archive:
            if codec is None:
                try:
                    codec = get_codec(sniff_archive(archive.namelist()))
                except MalformedFileError as exc:
                    self.tracker.fail(str(exc))
                    raise
                logger.info("archive looks like %s", codec.name)
            layout = archive_layout(codec.name)
            members = []
            for info in archive.infolist():
                if info.is_dir():
                    continue
                base = posixpath.basename(info.filename)
                kind = layout.get(base)
                if kind is None:
                    logger.debug("ignoring archive member %s", info.filename)
                    continue
                members.append((kind, info.filename, base))
            members.sort(key=lambda m: _KIND_ORDER[m[0]])
            self.tracker.start(len(members), f"importing {len(members)} files")

            current = ""
            try:
                for kind, filename, base in members:
                    self.tracker.check_cancelled()
                    current = base
                    self.tracker.note(f"importing {base}")
                    summary = ImportSummary(base, kind)
                    try:
                        self._import_member(archive.read(filename), codec, summary, overwrite, allow_ids)
                    except MalformedFileError as exc:
                        summary.failure = str(exc)
                        logger.warning("skipping %s: %s", base, exc)
                    summaries.append(summary)
                    self.tracker.advance(1, summary.describe())
            except ImportCancelled:
                self.tracker.fail("import cancelled")
                raise
            except Exception as exc:
                self.tracker.fail(f"{current}: {exc}")
                raise

        failed = [s for s in summaries if not s.ok]
        if failed:
            self.tracker.fail("; ".join(s.describe() for s in failed))
        else:
            self.tracker.complete(f"imported {len(summaries)} files")
        return summaries

    def import_directory_url(
        self, url: Optional[str] = None, allow_ids: Optional[AbstractSet[int]] = None
    ) -> ImportSummary:
        url = url or self.settings.radioid_url
        self.tracker.start(1, f"downloading {url}")
        try:
            with self._client_factory(timeout=self.settings.timeout) as client:
                data = client.fetch(url)
        except CodeplugError as exc:
            self.tracker.fail(str(exc))
            raise
        return self.import_file(data, "radioid", EntityKind.DIRECTORY, allow_ids=allow_ids, name="user.csv")

    def _import_member(self, data, codec, summary: ImportSummary, overwrite, allow_ids, zone=None) -> None:
        try:
            table = read_table(data)
            if codec is None:
                codec = get_codec(sniff(table.header))
                logger.info("%s looks like %s", summary.member, codec.name)
        except MalformedFileError as exc:
            raise MalformedFileError(str(exc), summary.member) from exc
        kind = summary.kind
        if kind == EntityKind.DIRECTORY:
            self._import_directory(codec, table, summary, allow_ids)
        elif kind == EntityKind.CHANNELS:
            self._import_channels(codec, table, summary, overwrite, zone)
        elif kind == EntityKind.TALKGROUPS:
            self._import_talkgroups(codec, table, summary)
        elif kind == EntityKind.ROAMING_CHANNELS:
            self._import_roaming_channels(codec, table, summary)
        else:
            self._import_collections(codec, table, summary)
        logger.info(summary.describe())

    def _decoder(self, codec, kind: EntityKind):
        decoder = getattr(codec, _DECODERS[kind], None)
        if decoder is None:
            raise CodeplugError(f"dialect {codec.name!r} has no {kind.value} table")
        return decoder

    def _import_directory(self, codec, table, summary: ImportSummary, allow_ids) -> None:
        if hasattr(codec, "decode_directory"):
            records, errors = codec.decode_directory(table)
            if allow_ids is not None:
                records = [r for r in records if r.dmr_id in allow_ids]
        else:
            records, errors = CODECS["radioid"].decode(table, allow_ids)
        summary.decoded = len(records)
        summary.errors.extend(errors)
        self.tracker.grow(len(records))
        summary.imported = repository.upsert_directory(
            self.engine,
            records,
            self.settings.batch_size,
            on_batch=lambda n: self.tracker.advance(n, f"{summary.member}: {n} directory rows written"),
        )

    def _import_talkgroups(self, codec, table, summary: ImportSummary) -> None:
        records, errors = self._decoder(codec, EntityKind.TALKGROUPS)(table)
        summary.decoded = len(records)
        summary.errors.extend(errors)
        with session_scope(self.engine) as session:
            summary.imported = repository.upsert_contacts(session, records)

    def _import_channels(
        self, codec, table, summary: ImportSummary, overwrite: bool, zone: Optional[str] = None
    ) -> None:
        records, errors = decode_channels(codec.name, table)
        summary.decoded = len(records)
        summary.errors.extend(errors)
        with session_scope(self.engine) as session:
            if overwrite:
                removed = repository.delete_all_channels(session)
                logger.info("overwrite: removed %d existing channels", removed)
                keys = set()
            else:
                keys = repository.channel_keys(session)
            accepted = []
            for channel in records:
                key = (channel.name, round(channel.rx_frequency, 6))
                if key in keys:
                    summary.skipped += 1
                    continue
                problems = channel.problems()
                if problems:
                    summary.errors.append(RowError(0, "; ".join(problems)))
                    continue
                keys.add(key)
                accepted.append(channel)
            ContactResolver(session).resolve(accepted)
            repository.insert_channels(session, accepted)
            summary.imported = len(accepted)
            if zone:
                zone_id = repository.find_or_create_collection(session, EntityKind.ZONES, zone)
                membership.append_members(session, EntityKind.ZONES, zone_id, [c.id for c in accepted])
                logger.info("added %d channels to zone %s", len(accepted), zone)

    def _import_roaming_channels(self, codec, table, summary: ImportSummary) -> None:
        records, errors = self._decoder(codec, EntityKind.ROAMING_CHANNELS)(table)
        summary.decoded = len(records)
        summary.errors.extend(errors)
        with session_scope(self.engine) as session:
            known = set(repository.ids_by_name(session, RoamingChannelRow))
            fresh = []
            for record in records:
                if record.name in known:
                    summary.skipped += 1
                    continue
                known.add(record.name)
                fresh.append(record)
            repository.insert_roaming_channels(session, fresh)
            summary.imported = len(fresh)

    def _import_collections(self, codec, table, summary: ImportSummary) -> None:
        kind = summary.kind
        records, errors = self._decoder(codec, kind)(table)
        summary.decoded = len(records)
        summary.errors.extend(errors)
        tables = repository.collection_tables(kind)
        with session_scope(self.engine) as session:
            names = repository.ids_by_name(session, tables.member_row)
            for record in records:
                ids, unknown = repository.resolve_member_ids(names, record.members)
                for name in unknown:
                    summary.errors.append(RowError(0, f"{record.name}: unknown member {name!r}"))
                collection_id = repository.find_or_create_collection(session, kind, record.name)
                membership.append_members(session, kind, collection_id, ids)
                summary.imported += 1

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def collect(
        self,
        zones: Optional[Sequence[str]] = None,
        filter_list: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> ExportBundle:
        """Gather what an export writes.

        Skipped channels are never exported. With ``zones`` only those
        zones and the channels they contain are kept. Directory rows come
        from the named filter list, otherwise from the whole directory;
        either way at most ``limit`` (default ``directory_limit``) rows by ID.
        """
        cap = limit if limit and limit > 0 else self.settings.directory_limit
        with session_scope(self.engine) as session:
            all_contacts = repository.list_contacts(session)
            bundle = ExportBundle(
                channels=repository.list_channels(session, include_skipped=False),
                contacts=[c for c in all_contacts if not c.is_placeholder],
                zones=repository.list_collections(session, EntityKind.ZONES),
                scan_lists=repository.list_collections(session, EntityKind.SCAN_LISTS),
                roaming_channels=repository.list_roaming_channels(session),
                roaming_zones=repository.list_collections(session, EntityKind.ROAMING_ZONES),
            )
            if filter_list:
                ids = repository.contact_list_ids(session, filter_list)
                bundle.directory = repository.list_directory(session, dmr_ids=ids, limit=cap)
            else:
                bundle.directory = repository.list_directory(session, limit=cap)

        names_by_id = {c.id: c.name for c in all_contacts}
        for channel in bundle.channels:
            if not channel.tx_contact and channel.contact_id in names_by_id:
                channel.tx_contact = names_by_id[channel.contact_id]

        if zones:
            wanted = set(zones)
            bundle.zones = [z for z in bundle.zones if z.name in wanted]
            missing = wanted - {z.name for z in bundle.zones}
            if missing:
                raise NotFoundError(f"unknown zones: {', '.join(sorted(missing))}")
            in_zones = {name for zone in bundle.zones for name in zone.members}
            bundle.channels = [c for c in bundle.channels if c.name in in_zones]

        exported = {c.name for c in bundle.channels}
        for collection in bundle.zones + bundle.scan_lists:
            collection.members = [m for m in collection.members if m in exported]
        return bundle

    def export(
        self,
        dialect: str,
        zones: Optional[Sequence[str]] = None,
        filter_list: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> bytes:
        """Return a zip archive (vendor dialects) or a CSV file (generic, CHIRP)."""
        codec = get_codec(dialect)
        if codec.name == "radioid":
            raise CodeplugError("the directory feed is import-only")
        bundle = self.collect(zones, filter_list, limit)
        if codec.name in ARCHIVE_DIALECTS:
            return self._export_archive(codec, bundle)
        return write_table(codec.encode(bundle.channels)).encode("utf-8")

    def export_to(self, path: Union[str, Path], dialect: str, **options) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.export(dialect, **options))
        logger.info("exported %s codeplug to %s", dialect, path)
        return path

    def _export_archive(self, codec, bundle: ExportBundle) -> bytes:
        by_name = {c.name: c for c in bundle.channels}
        if codec.name == "at890":
            channels = codec.encode(bundle.channels, {c.name: c for c in bundle.contacts})
        else:
            channels = codec.encode(bundle.channels)
        tables = {
            EntityKind.DIRECTORY: codec.encode_directory(bundle.directory),
            EntityKind.TALKGROUPS: codec.encode_talkgroups(bundle.contacts),
            EntityKind.CHANNELS: channels,
            EntityKind.ZONES: codec.encode_zones(bundle.zones, by_name),
            EntityKind.SCAN_LISTS: codec.encode_scan_lists(bundle.scan_lists, by_name),
            EntityKind.ROAMING_CHANNELS: codec.encode_roaming_channels(bundle.roaming_channels),
            EntityKind.ROAMING_ZONES: codec.encode_roaming_zones(bundle.roaming_zones),
        }
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as archive:
            for kind, table in tables.items():
                archive.writestr(member_name(codec.name, kind), write_table(table, **codec.write_options))
        logger.info(
            "%s archive: %d channels, %d zones, %d directory rows",
            codec.name,
            len(bundle.channels),
            len(bundle.zones),
            len(bundle.directory),
        )
        return buf.getvalue()
