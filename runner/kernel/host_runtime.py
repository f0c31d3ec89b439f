"""
Runner Kernel - In-process Host Runtime

JavaScript prelude evaluated ahead of every executed artifact. It defines
`__host`, the object every capability reference points into:

  __host.React    createElement, Component, hooks, context, Fragment
  __host.Icons    one component per registered icon name
  __host.Charts   one container component per registered chart part
  __host.mount    createElement(component) with no props, rendered to static markup

Hooks return their initial values and effects are not run: a render pass
produces one static frame. The browser preview page defines its own
`__host` over the real libraries and re-mounts the same program.

The prelude runs first in every fresh V8 context.
"""

from __future__ import annotations

import json
from functools import lru_cache

HOST_PRELUDE_TEMPLATE = r"""
var console = (typeof console !== 'undefined') ? console : (function () {
  function noop() {}
  return { log: noop, info: noop, warn: noop, error: noop, debug: noop };
})();
function setTimeout() { return 0; }
function clearTimeout() {}
function setInterval() { return 0; }
function clearInterval() {}

var __host = (function (iconNames, chartNames) {
  var ELEMENT = 'react.element';
  var Fragment = { $$fragment: true };
  var VOID_TAGS = { area: 1, base: 1, br: 1, col: 1, embed: 1, hr: 1, img: 1, input: 1,
                    link: 1, meta: 1, source: 1, track: 1, wbr: 1 };
  var ATTR_ALIASES = { className: 'class', htmlFor: 'for' };
  var HYPHENATED_ATTR = /^(stroke|fill|font|text|stop|clip|dominant|alignment|marker|flood|lighting)[A-Z]/;
  var UNITLESS_STYLE = { opacity: 1, zIndex: 1, fontWeight: 1, lineHeight: 1, flex: 1, flexGrow: 1,
                         flexShrink: 1, order: 1, zoom: 1 };

  function noop() {}

  function hasOwn(obj, key) {
    return Object.prototype.hasOwnProperty.call(obj, key);
  }

  function isArray(value) {
    return Object.prototype.toString.call(value) === '[object Array]';
  }

  // -- elements ------------------------------------------------------------

  function createElement(type, config) {
    var props = {};
    var key = null;
    var name;
    if (config != null) {
      for (name in config) {
        if (!hasOwn(config, name)) { continue; }
        if (name === 'key') { key = config[name]; }
        else if (name !== 'ref' && name !== '__self' && name !== '__source') { props[name] = config[name]; }
      }
    }
    var count = arguments.length - 2;
    if (count === 1) { props.children = arguments[2]; }
    else if (count > 1) { props.children = Array.prototype.slice.call(arguments, 2); }
    if (type && type.defaultProps) {
      for (name in type.defaultProps) {
        if (hasOwn(type.defaultProps, name) && props[name] === undefined) { props[name] = type.defaultProps[name]; }
      }
    }
    return { $$typeof: ELEMENT, type: type, props: props, key: key };
  }

  function isValidElement(value) {
    return value != null && typeof value === 'object' && value.$$typeof === ELEMENT;
  }

  function cloneElement(element, config) {
    var args = [element.type, {}];
    var name;
    for (name in element.props) { if (hasOwn(element.props, name)) { args[1][name] = element.props[name]; } }
    if (config != null) { for (name in config) { if (hasOwn(config, name)) { args[1][name] = config[name]; } } }
    for (var i = 2; i < arguments.length; i++) { args.push(arguments[i]); }
    return createElement.apply(null, args);
  }

  function toArray(children) {
    var out = [];
    (function collect(node) {
      if (node == null || typeof node === 'boolean') { return; }
      if (isArray(node)) { for (var i = 0; i < node.length; i++) { collect(node[i]); } return; }
      out.push(node);
    })(children);
    return out;
  }

  var Children = {
    toArray: toArray,
    map: function (children, fn) {
      var items = toArray(children);
      var out = [];
      for (var i = 0; i < items.length; i++) { out.push(fn(items[i], i)); }
      return out;
    },
    forEach: function (children, fn) {
      var items = toArray(children);
      for (var i = 0; i < items.length; i++) { fn(items[i], i); }
    },
    count: function (children) { return toArray(children).length; },
    only: function (children) { return toArray(children)[0]; }
  };

  // -- components and hooks ------------------------------------------------

  function Component(props, context) {
    this.props = props;
    this.context = context;
    this.state = {};
  }
  Component.prototype.isReactComponent = {};
  Component.prototype.setState = function (partial) {
    var next = typeof partial === 'function' ? partial(this.state, this.props) : partial;
    var merged = {};
    var key;
    for (key in this.state) { if (hasOwn(this.state, key)) { merged[key] = this.state[key]; } }
    for (key in next) { if (hasOwn(next, key)) { merged[key] = next[key]; } }
    this.state = merged;
  };
  Component.prototype.forceUpdate = noop;

  function PureComponent(props, context) {
    Component.call(this, props, context);
  }
  PureComponent.prototype = Object.create(Component.prototype);
  PureComponent.prototype.constructor = PureComponent;

  function createContext(defaultValue) {
    var context = { _currentValue: defaultValue };
    context.Provider = { $$provider: context };
    context.Consumer = { $$consumer: context };
    return context;
  }

  function forwardRef(render) {
    var Forwarded = function (props) { return render(props, null); };
    Forwarded.displayName = render.displayName || render.name;
    return Forwarded;
  }

  var React = {
    createElement: createElement,
    cloneElement: cloneElement,
    isValidElement: isValidElement,
    Children: Children,
    Component: Component,
    PureComponent: PureComponent,
    Fragment: Fragment,
    createContext: createContext,
    forwardRef: forwardRef,
    memo: function (type) { return type; },
    useState: function (initial) {
      return [typeof initial === 'function' ? initial() : initial, noop];
    },
    useReducer: function (reducer, initialArg, init) {
      return [init ? init(initialArg) : initialArg, noop];
    },
    useEffect: noop,
    useLayoutEffect: noop,
    useRef: function (initial) { return { current: initial }; },
    useMemo: function (factory) { return factory(); },
    useCallback: function (callback) { return callback; },
    useContext: function (context) { return context._currentValue; }
  };

  // -- static rendering ----------------------------------------------------

  function escapeText(value) {
    return String(value).replace(/&/g, '&amp;').replace(/</g, '&lt;').replace(/>/g, '&gt;');
  }

  function escapeAttr(value) {
    return escapeText(value).replace(/"/g, '&quot;');
  }

  function hyphenate(name) {
    return name.replace(/([A-Z])/g, '-$1').toLowerCase();
  }

  function styleString(style) {
    var parts = [];
    var key;
    var value;
    for (key in style) {
      if (!hasOwn(style, key)) { continue; }
      value = style[key];
      if (value == null || value === '' || typeof value === 'boolean') { continue; }
      if (typeof value === 'number' && value !== 0 && !UNITLESS_STYLE[key]) { value = value + 'px'; }
      parts.push(hyphenate(key) + ':' + value);
    }
    return parts.join(';');
  }

  function renderAttributes(props) {
    var out = '';
    var name;
    var value;
    var attr;
    for (name in props) {
      if (!hasOwn(props, name)) { continue; }
      if (name === 'children' || name === 'dangerouslySetInnerHTML') { continue; }
      value = props[name];
      if (value == null || value === false || typeof value === 'function') { continue; }
      if (/^on[A-Z]/.test(name)) { continue; }
      attr = ATTR_ALIASES[name] || (HYPHENATED_ATTR.test(name) ? hyphenate(name) : name);
      if (name === 'style' && typeof value === 'object') { value = styleString(value); }
      out += value === true ? ' ' + attr : ' ' + attr + '="' + escapeAttr(value) + '"';
    }
    return out;
  }

  function renderNode(node) {
    if (node == null || typeof node === 'boolean') { return ''; }
    if (typeof node === 'string' || typeof node === 'number') { return escapeText(node); }
    if (isArray(node)) {
      var html = '';
      for (var i = 0; i < node.length; i++) { html += renderNode(node[i]); }
      return html;
    }
    if (!isValidElement(node)) {
      throw new Error('Objects are not valid as a React child');
    }

    var type = node.type;
    var props = node.props;
    if (typeof type === 'string') {
      var attrs = renderAttributes(props);
      if (VOID_TAGS[type]) { return '<' + type + attrs + '/>'; }
      var inner = props.dangerouslySetInnerHTML ? String(props.dangerouslySetInnerHTML.__html) : renderNode(props.children);
      return '<' + type + attrs + '>' + inner + '</' + type + '>';
    }
    if (type === Fragment) { return renderNode(props.children); }
    if (type && type.$$provider) {
      var context = type.$$provider;
      var previous = context._currentValue;
      context._currentValue = props.value;
      try { return renderNode(props.children); } finally { context._currentValue = previous; }
    }
    if (type && type.$$consumer) {
      return renderNode(props.children(type.$$consumer._currentValue));
    }
    if (typeof type === 'function') {
      if (type.prototype && type.prototype.isReactComponent) {
        var instance = new type(props);
        instance.props = props;
        return renderNode(instance.render());
      }
      return renderNode(type(props));
    }
    throw new Error('Element type is invalid: expected a string or a function but got: ' + typeof type);
  }

  // -- capability sets -----------------------------------------------------

  function makeIcon(name) {
    var Icon = function (props) {
      var size = props.size != null ? props.size : 24;
      return createElement('svg', {
        'data-icon': name,
        xmlns: 'http://www.w3.org/2000/svg',
        width: size,
        height: size,
        viewBox: '0 0 24 24',
        fill: 'none',
        stroke: props.color || 'currentColor',
        strokeWidth: props.strokeWidth != null ? props.strokeWidth : 2,
        strokeLinecap: 'round',
        strokeLinejoin: 'round',
        className: props.className,
        style: props.style
      });
    };
    Icon.displayName = name;
    return Icon;
  }

  function makeChart(name) {
    var Chart = function (props) {
      return createElement('div', {
        'data-chart': name,
        className: props.className,
        style: { width: props.width, height: props.height }
      }, props.children);
    };
    Chart.displayName = name;
    return Chart;
  }

  var Icons = {};
  var Charts = {};
  var i;
  for (i = 0; i < iconNames.length; i++) { Icons[iconNames[i]] = makeIcon(iconNames[i]); }
  for (i = 0; i < chartNames.length; i++) { Charts[chartNames[i]] = makeChart(chartNames[i]); }

  // -- mounting ------------------------------------------------------------

  function isComponentShaped(value, producesElements) {
    if (typeof value !== 'function') { return false; }
    return !!producesElements || !!(value.prototype && value.prototype.isReactComponent);
  }

  function mount(component) {
    if (!component) { return { ok: false, reason: 'no_component' }; }
    var element = createElement(component, null);
    return {
      ok: true,
      component: component.displayName || component.name || 'Component',
      markup: renderNode(element)
    };
  }

  return {
    React: React,
    Icons: Icons,
    Charts: Charts,
    isComponentShaped: isComponentShaped,
    mount: mount,
    renderToStaticMarkup: renderNode
  };
})(%(icons)s, %(charts)s);
"""


@lru_cache(maxsize=8)
def host_prelude(icon_names: tuple[str, ...], chart_names: tuple[str, ...]) -> str:
    """The prelude with the registered icon and chart names embedded."""
    return HOST_PRELUDE_TEMPLATE % {"icons": json.dumps(list(icon_names)), "charts": json.dumps(list(chart_names))}
