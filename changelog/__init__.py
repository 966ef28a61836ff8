# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
generates changelogs (markdown and `jenkins.io/v1` `Release` documents) for a range of git
commits, cross-referencing issues, pull requests and dependency updates.

The pipeline consists of (in order of invocation):

- fetch: commits between two revisions
- assemble: commit summaries, enriched w/ users (users) and issues (issues)
- dependencies: collapsing of dependency updates
- record: the release document
- markdown: the human readable changelog

see `changelog.pipeline.generate_changelog` for the orchestration of a full run.
'''
