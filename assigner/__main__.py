'''
CLI interface for the assigner
'''

import argparse
import csv
import datetime
import json
import logging
import time
import uuid

from .core import AutoAssigner
from .datasource import InMemoryDatasource
from .models import (
    Assignment,
    Bid,
    BidValue,
    ConferenceSettings,
    Conflict,
    Paper,
    ReviewStatus,
    assignment_to_json,
    make_member,
)
from .store import InMemoryAssignmentStore

logger = logging.getLogger()
logger.setLevel(logging.DEBUG)

log_format = '%(asctime)s %(levelname)s: [in %(pathname)s:%(lineno)d] %(message)s'


def build_parser():
    parser = argparse.ArgumentParser(prog='assigner')
    parser.add_argument(
        '--members',
        required=True,
        help='''
            Member file, with each row containing comma-separated userID and
            capabilities (semicolon-separated, any of REVIEWER, CHAIR, ADMIN).
            e.g. "reviewer1,REVIEWER;CHAIR"
            '''
    )
    parser.add_argument(
        '--papers',
        required=True,
        help='''
            Paper file, with each row containing comma-separated paperID, status
            and author userIDs (semicolon-separated).
            e.g. "paper1,submitted,author1;author2"
            '''
    )
    parser.add_argument(
        '--bids',
        help='''
            Bid file, with each row containing comma-separated paperID, userID
            and bid (YES, MAYBE, NO or CONFLICT).
            e.g. "paper1,reviewer1,YES"
            '''
    )
    parser.add_argument(
        '--conflicts',
        help='''
            Conflict file, with each row containing comma-separated paperID and
            userID of a declared conflict of interest.
            e.g. "paper1,reviewer1"
            '''
    )
    parser.add_argument(
        '--assignments',
        help='''
            Existing assignments, with each row containing comma-separated
            paperID, userID and optionally the review status.
            e.g. "paper1,reviewer1,DRAFT"
            '''
    )
    parser.add_argument('--conference_id', default='conference')
    parser.add_argument('--max_reviewers_per_paper', default=3, type=int)
    parser.add_argument('--assignment_timeout_days', default=3, type=int)
    parser.add_argument('--output', default='assignments.json')
    parser.add_argument('--log_file', default='default.log')
    return parser


def read_rows(path):
    with open(path) as file_handle:
        return [
            [column.strip() for column in row]
            for row in csv.reader(file_handle)
            if row
        ]


def split_ids(column):
    return [value.strip() for value in column.split(';') if value.strip()]


def load_datasource(args):
    conference_id = args.conference_id

    members = [
        make_member(row[0], conference_id, split_ids(row[1]))
        for row in read_rows(args.members)
    ]

    papers = [
        Paper(
            id=row[0],
            conference_id=conference_id,
            status=row[1],
            author_ids=frozenset(split_ids(row[2]) if len(row) > 2 else []),
        )
        for row in read_rows(args.papers)
    ]

    bids = []
    if args.bids:
        bids = [
            Bid(row[0], row[1], BidValue(row[2].upper()))
            for row in read_rows(args.bids)
        ]

    conflicts = []
    if args.conflicts:
        conflicts = [Conflict(row[0], row[1]) for row in read_rows(args.conflicts)]

    existing = []
    if args.assignments:
        now = datetime.datetime.now(datetime.timezone.utc)
        for row in read_rows(args.assignments):
            status = ReviewStatus(row[2].upper()) if len(row) > 2 else ReviewStatus.NOT_STARTED
            existing.append(
                Assignment(uuid.uuid4().hex, row[0], row[1], status, None, now)
            )

    settings = ConferenceSettings(
        max_reviewers_per_paper=args.max_reviewers_per_paper,
        assignment_timeout_days=args.assignment_timeout_days,
    )

    logger.info('Count of members={}'.format(len(members)))
    logger.info('Count of papers={}'.format(len(papers)))
    logger.info('Count of bids={}'.format(len(bids)))

    return InMemoryDatasource(
        members=members,
        papers=papers,
        bids=bids,
        conflicts=conflicts,
        settings={conference_id: settings},
        store=InMemoryAssignmentStore(existing, logger=logger),
        logger=logger,
    )


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(filename=args.log_file, format=log_format)
    logger.addHandler(logging.StreamHandler())

    t0 = time.time()
    logger.info('Starting time={}'.format(t0))

    datasource = load_datasource(args)
    assigner = AutoAssigner(datasource=datasource, logger=logger)
    result = assigner.run(args.conference_id)

    logger.info('Writing assignments to file')
    with open(args.output, 'w') as f:
        f.write(json.dumps(
            {
                'result': result.as_dict(),
                'allAssignments': [
                    assignment_to_json(a)
                    for a in datasource.get_assignments(args.conference_id)
                ],
            },
            indent=2
        ))

    logger.info('Created {} assignments, {} papers unsatisfied'.format(
        result.total_assigned, len(result.unsatisfied_papers)))
    t1 = time.time()
    logger.info('Overall execution time: {0} seconds'.format(t1 - t0))
    return result


if __name__ == '__main__':
    main()
