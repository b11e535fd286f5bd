"""
chaoscontrol module

This module contains:
 - actions that change the state of control-plane resources (actions
   directory)
 - probes that read the lifecycle state of control-plane resources (probes
   directory)
 - an async client for the control-plane REST API (client.py file)
 - the weighted-random policy deciding what to do next (policy.py file)
 - antagonists, the actors running them and the harness supervising the
   actors (antagonist.py, actor.py and harness.py files)
 - helper functions (helpers.py file)
 - common files (common directory)

The harness is a stress test. Several antagonists are pointed at the same
instance, disk or snapshot and, without any coordination between them, each
one repeatedly observes the resource's state, picks an action at random
(weighted by that state) and asks the control plane to carry it out. Two
antagonists deleting the same disk at once, or one starting an instance while
another destroys it, is the point: the control plane must answer every such
race with a sensible error response, and every resource must end up in a
state the antagonists know about.

A failure that looks like a lost race (an error response from the control
plane) is logged and the antagonist moves on. A failure that means the
control plane misbehaved (no response, an undecodable response, a resource
stuck in a state like "failed") stops the run.

Things to consider when adding or modifying actions and/or probes:
1. Actions and probes could/may be used outside of the harness for other
   kinds of integration or systems testing. Therefore, they should only
   depend on a client and their arguments.
"""
