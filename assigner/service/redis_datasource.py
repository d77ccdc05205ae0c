"""
Redis-backed implementation of the data interfaces the assignment engine consumes.

Key layout:
    conference:<id>:settings       hash  max_reviewers_per_paper, assignment_timeout_days
    conference:<id>:members        hash  user id -> JSON list of capabilities
    conference:<id>:papers         set   paper ids
    conference:<id>:bids           hash  "<paper id>|<reviewer id>" -> bid value
    conference:<id>:conflicts      set   "<paper id>|<user id>"
    conference:<id>:auto_assign    hash  run status
    paper:<id>                     hash  conference_id, status, author_ids (JSON)
    paper:<id>:assignments         hash  reviewer id -> assignment id
    assignment:<id>                hash  assignment fields
    reviewer:<id>:assignments      set   assignment ids
"""

import datetime
import json
import logging
import uuid

import redis

from ..errors import (
    AssignmentNotFound,
    CapacityExceeded,
    DuplicateAssignment,
    PaperNotFound,
    PersistenceFailure,
)
from ..models import (
    Assignment,
    Bid,
    BidValue,
    ConferenceSettings,
    Conflict,
    Paper,
    REVIEWABLE_STATUSES,
    ReviewStatus,
    make_member,
)

PAIR_SEPARATOR = "|"


def _pair(first, second):
    return "{}{}{}".format(first, PAIR_SEPARATOR, second)


def _unpair(value):
    first, second = value.split(PAIR_SEPARATOR, 1)
    return first, second


def _parse_datetime(value):
    return datetime.datetime.fromisoformat(value) if value else None


class RedisDatasource:
    def __init__(
        self,
        url="redis://localhost:6379/0",
        connection_pool=None,
        logger=logging.getLogger(__name__),
    ):
        self.url = url
        self.connection_pool = connection_pool
        self.logger = logger
        self._client = None

    def __getstate__(self):
        # connection pools hold sockets and locks; workers reconnect from the url
        state = self.__dict__.copy()
        state["connection_pool"] = None
        state["_client"] = None
        return state

    @property
    def client(self):
        if self._client is None:
            if self.connection_pool is not None:
                self._client = redis.Redis(connection_pool=self.connection_pool)
            else:
                self._client = redis.Redis.from_url(self.url, decode_responses=True)
        return self._client

    def _paper_key(self, paper_id):
        return "paper:{}".format(paper_id)

    def _paper_assignments_key(self, paper_id):
        return "paper:{}:assignments".format(paper_id)

    def _assignment_key(self, assignment_id):
        return "assignment:{}".format(assignment_id)

    def _reviewer_assignments_key(self, reviewer_id):
        return "reviewer:{}:assignments".format(reviewer_id)

    def _conference_key(self, conference_id, name):
        return "conference:{}:{}".format(conference_id, name)

    def _encode_assignment(self, assignment):
        return {
            "id": assignment.id,
            "paper_id": assignment.paper_id,
            "reviewer_id": assignment.reviewer_id,
            "status": assignment.status.value,
            "due_date": assignment.due_date.isoformat() if assignment.due_date else "",
            "created_at": assignment.created_at.isoformat(),
        }

    def _decode_assignment(self, fields):
        return Assignment(
            id=fields["id"],
            paper_id=fields["paper_id"],
            reviewer_id=fields["reviewer_id"],
            status=ReviewStatus(fields["status"]),
            due_date=_parse_datetime(fields.get("due_date")),
            created_at=_parse_datetime(fields["created_at"]),
        )

    def _load_assignments(self, assignment_ids):
        pipe = self.client.pipeline(transaction=False)
        for assignment_id in assignment_ids:
            pipe.hgetall(self._assignment_key(assignment_id))
        return [self._decode_assignment(fields) for fields in pipe.execute() if fields]

    # writers used by the membership, submission and bidding flows

    def set_conference_settings(self, conference_id, settings):
        self.client.hset(
            self._conference_key(conference_id, "settings"),
            mapping=settings._asdict(),
        )

    def add_member(self, member):
        self.client.hset(
            self._conference_key(member.conference_id, "members"),
            member.user_id,
            json.dumps(sorted(c.value for c in member.capabilities)),
        )

    def add_paper(self, paper):
        pipe = self.client.pipeline()
        pipe.hset(
            self._paper_key(paper.id),
            mapping={
                "conference_id": paper.conference_id,
                "status": paper.status,
                "author_ids": json.dumps(sorted(paper.author_ids)),
            },
        )
        pipe.sadd(self._conference_key(paper.conference_id, "papers"), paper.id)
        pipe.execute()

    def place_bid(self, paper_id, reviewer_id, value):
        conference_id = self.get_paper(paper_id).conference_id
        self.client.hset(
            self._conference_key(conference_id, "bids"),
            _pair(paper_id, reviewer_id),
            value.value,
        )

    def declare_conflict(self, paper_id, user_id):
        conference_id = self.get_paper(paper_id).conference_id
        self.client.sadd(
            self._conference_key(conference_id, "conflicts"), _pair(paper_id, user_id)
        )

    # reads consumed by the assignment engine

    def get_conference_members(self, conference_id):
        members = self.client.hgetall(self._conference_key(conference_id, "members"))
        return [
            make_member(user_id, conference_id, json.loads(capabilities))
            for user_id, capabilities in sorted(members.items())
        ]

    def get_bids(self, conference_id):
        bids = self.client.hgetall(self._conference_key(conference_id, "bids"))
        return [
            Bid(*_unpair(pair), BidValue(value)) for pair, value in sorted(bids.items())
        ]

    def get_conflicts(self, conference_id):
        conflicts = self.client.smembers(self._conference_key(conference_id, "conflicts"))
        return [Conflict(*_unpair(pair)) for pair in sorted(conflicts)]

    def has_conflict(self, paper_id, user_id):
        conference_id = self.get_paper(paper_id).conference_id
        return bool(
            self.client.sismember(
                self._conference_key(conference_id, "conflicts"),
                _pair(paper_id, user_id),
            )
        )

    def get_paper(self, paper_id):
        pipe = self.client.pipeline(transaction=False)
        pipe.hgetall(self._paper_key(paper_id))
        pipe.hlen(self._paper_assignments_key(paper_id))
        fields, assignment_count = pipe.execute()

        if not fields:
            raise PaperNotFound("Paper {} not found".format(paper_id))

        return Paper(
            id=paper_id,
            conference_id=fields["conference_id"],
            status=fields["status"],
            author_ids=frozenset(json.loads(fields["author_ids"])),
            assignment_count=assignment_count,
        )

    def get_papers_needing_review(self, conference_id):
        paper_ids = self.client.smembers(self._conference_key(conference_id, "papers"))
        papers = [self.get_paper(paper_id) for paper_id in sorted(paper_ids)]
        return [paper for paper in papers if paper.status in REVIEWABLE_STATUSES]

    def get_conference_settings(self, conference_id):
        fields = self.client.hgetall(self._conference_key(conference_id, "settings"))
        return ConferenceSettings(**{key: int(value) for key, value in fields.items()})

    def get_assignments(self, conference_id):
        paper_ids = self.client.smembers(self._conference_key(conference_id, "papers"))
        assignment_ids = []
        for paper_id in sorted(paper_ids):
            assignment_ids.extend(
                self.client.hvals(self._paper_assignments_key(paper_id))
            )
        return self._load_assignments(assignment_ids)

    def get_assignment(self, assignment_id):
        fields = self.client.hgetall(self._assignment_key(assignment_id))
        if not fields:
            raise AssignmentNotFound("Assignment {} not found".format(assignment_id))
        return self._decode_assignment(fields)

    def get_assignments_for_paper(self, paper_id):
        assignment_ids = self.client.hvals(self._paper_assignments_key(paper_id))
        return sorted(
            self._load_assignments(assignment_ids), key=lambda a: a.created_at
        )

    def get_assignments_for_reviewer(self, reviewer_id):
        assignment_ids = self.client.smembers(self._reviewer_assignments_key(reviewer_id))
        return sorted(
            self._load_assignments(assignment_ids),
            key=lambda a: a.created_at,
            reverse=True,
        )

    # writes

    def create_assignment(
        self,
        paper_id,
        reviewer_id,
        status=ReviewStatus.NOT_STARTED,
        due_date=None,
        max_assignments=None,
    ):
        """
        Insert an assignment with an optimistic WATCH/MULTI transaction on the
        paper's assignment hash; the duplicate and capacity checks are retried
        whenever another client changes the hash before the insert lands.
        """
        paper_assignments_key = self._paper_assignments_key(paper_id)

        try:
            with self.client.pipeline() as pipe:
                while True:
                    try:
                        pipe.watch(paper_assignments_key)

                        if pipe.hexists(paper_assignments_key, reviewer_id):
                            raise DuplicateAssignment(
                                "Assignment already exists for paper {} and reviewer {}".format(
                                    paper_id, reviewer_id
                                )
                            )

                        if max_assignments is not None:
                            current = pipe.hlen(paper_assignments_key)
                            if current >= max_assignments:
                                raise CapacityExceeded(
                                    "Paper {} already has {} of {} reviewers".format(
                                        paper_id, current, max_assignments
                                    )
                                )

                        paper_status = pipe.hget(self._paper_key(paper_id), "status")

                        assignment = Assignment(
                            id=uuid.uuid4().hex,
                            paper_id=paper_id,
                            reviewer_id=reviewer_id,
                            status=status,
                            due_date=due_date,
                            created_at=datetime.datetime.now(datetime.timezone.utc),
                        )

                        pipe.multi()
                        pipe.hset(paper_assignments_key, reviewer_id, assignment.id)
                        pipe.hset(
                            self._assignment_key(assignment.id),
                            mapping=self._encode_assignment(assignment),
                        )
                        pipe.sadd(
                            self._reviewer_assignments_key(reviewer_id), assignment.id
                        )
                        if paper_status == "submitted":
                            pipe.hset(self._paper_key(paper_id), "status", "under_review")
                        pipe.execute()
                        return assignment
                    except redis.WatchError:
                        self.logger.debug(
                            "Assignments of paper {} changed during commit, retrying".format(
                                paper_id
                            )
                        )
                        continue
        except redis.RedisError as error_handle:
            raise PersistenceFailure(str(error_handle)) from error_handle

    def delete_assignment(self, assignment_id):
        assignment = self.get_assignment(assignment_id)
        pipe = self.client.pipeline()
        pipe.hdel(self._paper_assignments_key(assignment.paper_id), assignment.reviewer_id)
        pipe.srem(self._reviewer_assignments_key(assignment.reviewer_id), assignment_id)
        pipe.delete(self._assignment_key(assignment_id))
        pipe.execute()
        return assignment

    def update_assignment_status(self, assignment_id, status):
        assignment = self.get_assignment(assignment_id)._replace(status=status)
        self.client.hset(self._assignment_key(assignment_id), "status", status.value)
        return assignment

    def set_status(
        self, conference_id, status, message=None, additional_status_info={}
    ):
        self.logger.info(
            "conference={0}, status={1}, message={2}, additional_status_info={3}".format(
                conference_id, status.value, message, additional_status_info
            )
        )
        key = self._conference_key(conference_id, "auto_assign")
        pipe = self.client.pipeline()
        pipe.delete(key)
        pipe.hset(
            key,
            mapping={
                "status": status.value,
                "message": message or "",
                "info": json.dumps(additional_status_info),
            },
        )
        pipe.execute()

    def get_status(self, conference_id):
        fields = self.client.hgetall(self._conference_key(conference_id, "auto_assign"))
        if not fields:
            return {"status": "Initialized"}
        status = {"status": fields["status"], "message": fields.get("message") or None}
        status.update(json.loads(fields.get("info") or "{}"))
        return status
